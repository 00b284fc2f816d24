from __future__ import annotations

# Polish alphabet plus the loanword letters q and v. Order is fixed: stored
# masks are only valid for this exact sequence.
ALPHABET = 'aąbcćdeęfghijklłmnńoópqrsśtuvwxyzźż'
WIDTH = len(ALPHABET)

_POSITIONS = {ch: i for i, ch in enumerate(ALPHABET)}


def encode(text: str) -> int:
    """Presence mask of the alphabet letters in ``text``.

    Letter counts are not represented: 'aardvark' and 'ardvk' share a mask.
    Characters outside the alphabet are ignored.
    """
    mask = 0
    for ch in text.lower():
        i = _POSITIONS.get(ch)
        if i is not None:
            # position 0 is the highest of the WIDTH bits
            mask |= 1 << (WIDTH - 1 - i)
    return mask


def is_subset_formable(word_mask: int, pool_mask: int) -> bool:
    return word_mask & pool_mask == word_mask

