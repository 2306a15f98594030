"""Block storage volume, snapshot and attachment operations for a VPC cloud backend."""

__version__ = "0.1.0"