"""Repository setup app for newly created GitHub repositories.

This package receives GitHub ``repository`` webhooks and bootstraps the
new repository:
- Webhook signature verification (HMAC-SHA-256)
- Sealed-box encryption of credential secrets (libsodium compatible)
- Secret provisioning through the GitHub Actions secrets API
- Template file creation (license, contributing guide, label workflow)
"""
