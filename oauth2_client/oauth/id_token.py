"""ID token decoding and signature verification.

Signature cryptography is delegated to PyJWT. Decoding without a key only
inspects the payload and must never be used for trust decisions.

With a key, the accepted algorithms come from the key type, never from the
token header, so a token cannot pick the algorithm it is checked with.
"""

import logging
from typing import Any

import jwt
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa

from ..utils.errors import (
    ConfigurationError,
    InvalidTypeError,
    TokenDecodeError,
    TokenVerificationError,
)

logger = logging.getLogger(__name__)

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")
RSA_ALGORITHMS = ("RS256", "RS384", "RS512", "PS256", "PS384", "PS512")
EC_ALGORITHMS = ("ES256", "ES384", "ES512")
OKP_ALGORITHMS = ("EdDSA",)

PEM_MARKER = b"-----BEGIN"


def _load_pem_key(data: bytes) -> Any:
    try:
        if b"CERTIFICATE" in data:
            return x509.load_pem_x509_certificate(data).public_key()
        if b"PRIVATE KEY" in data:
            return serialization.load_pem_private_key(data, password=None)
        return serialization.load_pem_public_key(data)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Verification key is not a usable PEM key: {e}", field="key") from e


def key_algorithms(key: Any) -> tuple[str, ...]:
    """Signing algorithms that can be verified with the given key.

    Strings and bytes are PEM keys if they carry a PEM header and HMAC
    secrets otherwise.

    Raises:
        InvalidTypeError: If the key type is not supported
        ConfigurationError: If a PEM key cannot be loaded
    """
    if isinstance(key, (str, bytes)):
        data = key.encode("utf-8") if isinstance(key, str) else key
        if PEM_MARKER not in data:
            return HMAC_ALGORITHMS
        key = _load_pem_key(data)

    if isinstance(key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
        return RSA_ALGORITHMS
    if isinstance(key, (ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey)):
        return EC_ALGORITHMS
    if isinstance(
        key,
        (
            ed25519.Ed25519PublicKey,
            ed25519.Ed25519PrivateKey,
            ed448.Ed448PublicKey,
            ed448.Ed448PrivateKey,
        ),
    ):
        return OKP_ALGORITHMS
    raise InvalidTypeError(
        f"Unsupported verification key type: {type(key).__name__}", field="key"
    )


def decode_id_token(
    raw: str,
    key: Any = None,
    *,
    algorithms: list[str] | None = None,
    audience: str | list[str] | None = None,
    verify_expiration: bool = False,
) -> dict[str, Any]:
    """Decode an ID token, verifying its signature when a key is given.

    Args:
        raw: Encoded ID token (compact JWS)
        key: Verification key: PEM string or bytes, a cryptography key object,
            or an HMAC secret. Without a key the payload is returned unverified.
        algorithms: Accepted signing algorithms, narrowed to those matching
            the key type (default: every algorithm of the key type)
        audience: Expected audience; checked only when given
        verify_expiration: Also reject expired tokens

    Returns:
        Payload claims

    Raises:
        TokenVerificationError: If the signature, algorithm or key does not
            match the token
        TokenDecodeError: If the token is malformed or a requested claim check fails
        ConfigurationError: If no requested algorithm fits the key
    """
    if not isinstance(raw, str):
        raise InvalidTypeError(f"ID token must be a string, got {type(raw).__name__}", field="id_token")

    if key is None:
        try:
            payload = jwt.decode(raw, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise TokenDecodeError(f"Malformed ID token: {e}") from e
        return _require_claims_object(payload)

    allowed = key_algorithms(key)
    if algorithms is not None:
        allowed = tuple(alg for alg in algorithms if alg in allowed)
        if not allowed:
            raise ConfigurationError(
                f"None of the algorithms {algorithms} can be verified with this key",
                field="algorithms",
            )

    options = {
        "verify_signature": True,
        "verify_aud": audience is not None,
        "verify_exp": verify_expiration,
        "verify_nbf": verify_expiration,
        "verify_iat": False,
    }

    try:
        payload = jwt.decode(raw, key, algorithms=list(allowed), audience=audience, options=options)
    except jwt.InvalidSignatureError as e:
        logger.warning("ID token signature verification failed")
        raise TokenVerificationError("Signature verification failed") from e
    except (jwt.InvalidAlgorithmError, jwt.InvalidKeyError) as e:
        logger.warning(f"ID token cannot be verified with the supplied key: {e}")
        raise TokenVerificationError(f"Signature verification failed: {e}") from e
    except jwt.PyJWTError as e:
        raise TokenDecodeError(f"Invalid ID token: {e}") from e

    return _require_claims_object(payload)


def _require_claims_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise TokenDecodeError("ID token payload is not a JSON object")
    return payload
