"""
auth — User authentication module.

Provides:
  • Session token creation & verification
  • Password hashing (bcrypt)
  • Register / Login / Logout / Me API routes
  • ``get_current_user`` FastAPI dependency (cookie, then Bearer header)
"""
