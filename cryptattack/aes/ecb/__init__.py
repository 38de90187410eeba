from .oracle_attack import (
    confirm_ecb,
    discover_block_size,
    recover_suffix,
    recover_suffix_with_prefix,
)
from .token_forgery import ProfileOracle, forge_admin_profile
