"""Exception taxonomy for the scanner."""


class SupplyChainScanError(Exception):
    """Base class for scanner errors that map to a tool-error exit status."""


class ConfigError(SupplyChainScanError):
    """Invalid scanner configuration."""


class SignatureConfigError(ConfigError):
    """The signature set could not be loaded or is malformed."""


class ScanRootError(SupplyChainScanError):
    """The scan root is missing, not a directory, or unreadable."""
