"""
Enrollment Subdomain

Accounts and merchants enrollment requests for the NAD API.
"""
