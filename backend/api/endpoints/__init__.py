"""
API Endpoints
=============
Route handlers grouped by concern.
"""
