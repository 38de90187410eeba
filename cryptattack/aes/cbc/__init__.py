from .bitflip import forge_injection
from .vaudenay_attack import decrypt_with_padding_oracle, padding_oracle_attack
