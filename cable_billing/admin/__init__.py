from . import billing, ledger  # noqa: F401
