"""Allele trimming and variant normalization for Ion Reporter FUNC mapping."""

from .models import NormalizedVariant


def trim_shared_suffix(ref: str, alt: str) -> tuple[str, str, int]:
    """
    Remove identical trailing bases from a ref/alt pair.

    Trimming stops as soon as either allele is down to a single base, so
    an anchor base is always kept.

    Args:
        ref: Reference allele
        alt: Alternative allele

    Returns:
        Tuple of (trimmed_ref, trimmed_alt, bases_removed)
    """
    removed = 0
    while len(ref) > 1 and len(alt) > 1 and ref[-1] == alt[-1]:
        ref = ref[:-1]
        alt = alt[:-1]
        removed += 1

    return ref, alt, removed


def trim_shared_prefix(ref: str, alt: str) -> tuple[str, str, int]:
    """Remove identical leading bases from a ref/alt pair."""
    rev_ref, rev_alt, removed = trim_shared_suffix(ref[::-1], alt[::-1])
    return rev_ref[::-1], rev_alt[::-1], removed


def normalize_variant(ref: str, alt: str, pos: int) -> NormalizedVariant:
    """
    Normalize a ref/alt pair the way Ion Reporter computes normalizedRef,
    normalizedAlt and normalizedPos.

    Shared trailing bases are trimmed first, then shared leading bases.
    Only the leading trim moves the anchor position.

    Args:
        ref: Reference allele
        alt: Alternative allele
        pos: 1-based position of the reference allele

    Returns:
        NormalizedVariant with the minimal alleles and adjusted position
    """
    ref, alt, _ = trim_shared_suffix(ref, alt)
    ref, alt, prefix_delta = trim_shared_prefix(ref, alt)

    return NormalizedVariant(ref=ref, alt=alt, pos=pos + prefix_delta)


def is_normalized(ref: str, alt: str) -> bool:
    """
    Quick check if a ref/alt pair is already minimal.

    A pair is minimal when the shorter allele is a single base, or when
    the alleles differ at both ends.
    """
    if min(len(ref), len(alt)) <= 1:
        return True

    return ref[0] != alt[0] and ref[-1] != alt[-1]
