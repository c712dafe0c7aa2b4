"""
Contact Management App

Handles contact form submissions for the portfolio site:
- Public contact form submission (throttled)
- Keyword classification into tags and a priority
- Email notifications (submitter confirmation and owner alert)
- Admin listing, status workflow and statistics
- Housekeeping of old archived messages
"""
