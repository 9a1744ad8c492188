IDENTITY_WIZARD_VERSION = '0.3.0'  # version of the package

# The encrypted backup phrase envelope starts with this byte
BACKUP_ENVELOPE_VERSION = 1
