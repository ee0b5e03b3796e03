from .auth import any_auth_required, mobile_auth_required, role_required, web_auth_required
