"""
Database Services
Collection-spezifische Lese- und Schreiboperationen auf dem Document Store.
"""
