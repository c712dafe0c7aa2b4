"""
Centralized test suite for the portfolio contact service.

Test Organization:
- integration/ - classifier, submission pipeline, notifications, queries and housekeeping
- App-specific API and model tests remain in contact/tests.py
"""
