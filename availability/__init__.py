"""
Availability data source.

Fetches the raw availability payload for one date from the reservation
site, using session credentials captured outside this package.
"""
