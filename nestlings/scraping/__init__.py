"""
Product page scraping.

Responsibilities:
- Fetch allow-listed product pages over HTTP(S) with a bounded timeout.
- Pull title, price, brand, rating, image and description hints out of the HTML.
"""
