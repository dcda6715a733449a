"""
awsconnect - TOTP engine
RFC 4226 / RFC 6238 code generation from base32 secrets
"""

import base64
import binascii
import hashlib
import hmac
import math
import struct
import time
from dataclasses import dataclass

SUPPORTED_ALGORITHMS = ("SHA1", "SHA256", "SHA512")


# ==================== Errors ====================

class ValidationError(ValueError):
    """Secret text cannot be used as a TOTP key"""


class InvalidEncodingError(ValidationError):
    pass


class InvalidLengthError(ValidationError):
    pass


class GenerationError(RuntimeError):
    """HMAC computation failed"""


# ==================== Configuration ====================

@dataclass(frozen=True)
class TotpConfig:
    """Fixed TOTP parameters shared by every operation.

    skew is only used when verifying codes; generation ignores it.
    """
    algorithm: str = "SHA1"
    digits: int = 6
    skew: int = 1
    period: int = 30

    def __post_init__(self):
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm: {self.algorithm}")
        if not 6 <= self.digits <= 8:
            raise ValueError(f"Digits must be between 6 and 8, got {self.digits}")
        if self.period <= 0:
            raise ValueError(f"Period must be positive, got {self.period}")
        if self.skew < 0:
            raise ValueError(f"Skew must not be negative, got {self.skew}")

    @property
    def digestmod(self):
        return getattr(hashlib, self.algorithm.lower())


DEFAULT_CONFIG = TotpConfig()


# ==================== Secrets ====================

def normalize_secret(secret: str) -> str:
    """Remove whitespace and padding, uppercase"""
    return "".join(secret.split()).upper().rstrip("=")


def validate_and_normalize(secret: str, config: TotpConfig = DEFAULT_CONFIG) -> bytes:
    """Decode a base32 secret into raw key bytes.

    Accepts lowercase input, embedded spaces and missing padding, the way
    authenticator apps display secrets. Raises InvalidEncodingError for text
    that is not base32 and InvalidLengthError for an empty key.
    """
    # Non-ASCII letters can uppercase into base32 ones
    if not secret.isascii():
        raise InvalidEncodingError("Secret is not valid base32: non-ASCII characters")

    cleaned = normalize_secret(secret)
    # Add padding if needed
    padded = cleaned + "=" * ((-len(cleaned)) % 8)

    try:
        key = base64.b32decode(padded)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(f"Secret is not valid base32: {e}") from e

    if not key:
        raise InvalidLengthError("Secret decodes to an empty key")

    hotp(key, 0, config)
    return key


# ==================== TOTP Implementation ====================

def hotp(key: bytes, counter: int, config: TotpConfig = DEFAULT_CONFIG) -> str:
    """Generate HOTP code (RFC 4226)"""
    if counter < 0:
        raise GenerationError(f"Counter must not be negative, got {counter}")

    try:
        # Counter as 8-byte big-endian
        counter_bytes = struct.pack(">Q", counter)
        digest = hmac.new(key, counter_bytes, config.digestmod).digest()
    except (struct.error, TypeError, ValueError) as e:
        raise GenerationError(f"Failed to generate TOTP token: {e}") from e

    # Dynamic truncation
    offset = digest[-1] & 0x0F
    truncated = struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF

    otp = truncated % (10 ** config.digits)
    return str(otp).zfill(config.digits)


def time_step(now: float | None = None, config: TotpConfig = DEFAULT_CONFIG) -> int:
    if now is None:
        now = time.time()
    return int(now // config.period)


def current_code(key: bytes, now: float | None = None, config: TotpConfig = DEFAULT_CONFIG) -> str:
    """Generate TOTP code (RFC 6238) for `now`, defaulting to the wall clock"""
    return hotp(key, time_step(now, config), config)


def verify_code(key: bytes, code: str, now: float | None = None, config: TotpConfig = DEFAULT_CONFIG) -> bool:
    """Check a code against the current step and config.skew steps either side"""
    code = "".join(str(code).split())
    if len(code) != config.digits or not (code.isascii() and code.isdigit()):
        return False

    step = time_step(now, config)
    for counter in range(step - config.skew, step + config.skew + 1):
        if counter < 0:
            continue
        if hmac.compare_digest(hotp(key, counter, config), code):
            return True
    return False


def time_remaining(now: float | None = None, config: TotpConfig = DEFAULT_CONFIG) -> int:
    """Get seconds remaining until next TOTP rotation"""
    if now is None:
        now = time.time()
    return config.period - (math.floor(now) % config.period)
