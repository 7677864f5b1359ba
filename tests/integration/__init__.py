"""
Integration tests for hardy.

Run the client against a real HTTP server (httpbin):
- Status based retries and fallback
- Identification header on the wire
- Deadlines against slow endpoints
"""
