"""Token accounting for prompt fragments."""

import logging
from typing import Callable

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"

TokenCounter = Callable[[str], int]

_encoders: dict[str, tiktoken.Encoding] = {}


def get_encoder(encoding_name: str = DEFAULT_ENCODING) -> tiktoken.Encoding:
	"""Get or create the tiktoken encoder (lazy initialization)."""
	encoder = _encoders.get(encoding_name)
	if encoder is None:
		encoder = tiktoken.get_encoding(encoding_name)
		_encoders[encoding_name] = encoder
		logger.debug(f"Loaded token encoding {encoding_name}")
	return encoder


def count_tokens(text: str, encoding_name: str = DEFAULT_ENCODING) -> int:
	"""Count tokens in text using tiktoken."""
	if not text:
		return 0
	return len(get_encoder(encoding_name).encode(text, disallowed_special=()))


def make_counter(encoding_name: str = DEFAULT_ENCODING) -> TokenCounter:
	"""Build a single-argument counter bound to an encoding."""
	def counter(text: str) -> int:
		return count_tokens(text, encoding_name)
	return counter
