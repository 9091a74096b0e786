"""
Stonks: a Slack bot that replies to mentions with market quotes.
"""
