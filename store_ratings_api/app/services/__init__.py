"""
Service layer abstraction.

Each service encapsulates the business logic for one domain and
receives the ``Database`` handle explicitly, so handlers and tests
decide which database a call runs against.
"""
