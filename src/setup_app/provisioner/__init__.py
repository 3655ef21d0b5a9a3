"""Secret provisioning for newly created repositories."""

from src.setup_app.provisioner.secrets import ProvisionError, SecretProvisioner

__all__ = ["ProvisionError", "SecretProvisioner"]
