"""
HTTP front end for the lotscout crawler.
"""
