"""
Caller identity helpers package.
"""
from legal_functions.auth.token_guard import get_request_user_id, get_token_info

__all__ = ['get_request_user_id', 'get_token_info']
