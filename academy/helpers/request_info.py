from flask import request


def get_client_ip():
    # Cloudflare header if using CDN
    if request.headers.get("CF-Connecting-IP"):
        return request.headers["CF-Connecting-IP"]

    # NGINX reverse proxy headers
    xff = request.headers.get("X-Forwarded-For")
    if xff:
        # first IP is the original client
        return xff.split(",")[0].strip()

    if request.headers.get("X-Real-IP"):
        return request.headers["X-Real-IP"]

    return request.remote_addr or "0.0.0.0"


def get_json_body():
    """Return the request JSON object, or an empty dict for anything else."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
