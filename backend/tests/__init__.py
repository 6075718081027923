"""
Team Calendar - Test Suite

Structure:
- unit/: Unit tests for services, routes, and background jobs
- integration/: Integration tests for API endpoints
"""
