"""Text preparation for speech synthesis."""

from .normalizer import is_english, normalize, number_to_ordinal, number_to_words

__all__ = ["is_english", "normalize", "number_to_ordinal", "number_to_words"]
