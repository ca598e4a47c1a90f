"""NovaStream gateway.

Authenticates the administrator through a signed session cookie and proxies
video and image operations to Cloudinary. No state is kept locally.
"""
