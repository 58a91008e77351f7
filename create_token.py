"""Print a long-lived access token for an existing user.

Usage:
    python create_token.py <user_id> <ROLE> [days]
"""
import sys

from store_ratings_api.app.core.permissions import Role
from store_ratings_api.app.core.security import create_access_token

user_id = int(sys.argv[1])
role = Role(sys.argv[2].upper())
# lifetime in days, one year by default
days = int(sys.argv[3]) if len(sys.argv) > 3 else 365
token = create_access_token({"id": user_id, "role": role.value}, expires_delta=days * 24 * 60 * 60)
print(token)
