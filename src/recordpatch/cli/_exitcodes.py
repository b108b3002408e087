"""Process exit codes used by the recordpatch CLI."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
REJECTED = 3
