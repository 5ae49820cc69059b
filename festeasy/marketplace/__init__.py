"""
Event-services marketplace.

Responsibilities:
- Serve the provider catalog with search and category filters.
- Hold booking requests sent by clients and the provider's accept/reject decisions.
- Keep each provider's services catalog and dashboard counters.
"""
