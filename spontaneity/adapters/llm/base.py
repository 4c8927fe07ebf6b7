import json
import re
from abc import ABC, abstractmethod
from typing import Any

from spontaneity.core.errors import MalformedProviderOutputError
from spontaneity.schemas.cards import CandidateCard

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def parse_cards(content: str | None, source: str) -> list[CandidateCard]:
	"""Parse a completion that must be a JSON array of card objects.

	Markdown code fences around the array are tolerated. Array elements that
	are not objects are dropped; field validation is left to the normalizer.

	Raises:
		MalformedProviderOutputError: If the content is empty, not JSON, or not an array.
	"""
	text = (content or "").strip()
	fenced = _FENCE_RE.match(text)
	if fenced:
		text = fenced.group(1).strip()
	if not text:
		raise MalformedProviderOutputError(
			code="empty_completion",
			message=f"{source} returned an empty completion",
			details={"provider": source},
		)

	try:
		parsed: Any = json.loads(text)
	except json.JSONDecodeError as exc:
		raise MalformedProviderOutputError(
			code="invalid_json",
			message=f"{source} returned invalid JSON: {exc.msg}",
			details={"provider": source},
		) from exc

	if not isinstance(parsed, list):
		raise MalformedProviderOutputError(
			code="not_an_array",
			message=f"{source} returned {type(parsed).__name__} instead of an array",
			details={"provider": source},
		)

	cards = (CandidateCard.from_raw(item, source) for item in parsed)
	return [card for card in cards if card is not None]


class SuggestionProvider(ABC):
	"""Interface for LLM backends that produce suggestion cards.

	Attributes:
		name: Stable provider name, used for cooldowns, diagnostics and sources.
		persona: Opening line of this provider's prompt.
	"""

	name: str
	persona: str = "You are a hyper-local travel concierge."

	@property
	@abstractmethod
	def is_available(self) -> bool:
		"""False when the provider is not configured (e.g. no API key)."""

	@abstractmethod
	async def generate(self, prompt: str) -> list[CandidateCard]:
		"""Run one completion and parse it into candidate cards.

		Args:
			prompt: Fully built prompt for this provider.

		Returns:
			list[CandidateCard]: Parsed, not yet validated, candidates.

		Raises:
			ProviderOverloadedError: If the provider signals rate limiting.
			MalformedProviderOutputError: If the completion is not a JSON array.
			LLMAppError: For any other provider failure.
		"""
		...
