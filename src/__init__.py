"""
Pricing simulator source root: the pricing engine, quote exports, the HTTP API and its client.
"""
