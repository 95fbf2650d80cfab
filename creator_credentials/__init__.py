"""Creator credential service.

Issues creator credentials behind a validation gate and reconciles live
verification status with locally stored issuance metadata.
"""

__version__ = "0.1.0"
