"""
The locations command: resolution of the locations mentioned in a text.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from metrics import track_command

from ..models.base import BestLocation, CandidateEntity
from ..registry import Operation
from .base import TokenizingCommand, cut_text


@dataclass
class LocationsResult:
    """The best locations of a text, ranked by descending score."""
    language: str
    locations: List[BestLocation]


class FindLocations(TokenizingCommand):
    """
    The command executed on the route '/locations'.

    The tokens of all the sentences are joined into a single sequence: a
    mention can cross a sentence boundary found by the tokenizer (e.g. after
    an abbreviation dot).
    """

    name = "locations"
    operation = Operation.LOCATIONS

    @track_command("locations")
    def run(self,
            text: str,
            candidates: Sequence[CandidateEntity] = (),
            language: Optional[str] = None) -> LocationsResult:
        """
        Find the locations mentioned in a text.

        Args:
            text: The input text
            candidates: Candidate entities biasing the resolution
            language: The text language, None to detect it

        Returns:
            The ranked best locations
        """
        tokenized = self.tokenize(text, language=language)
        finder = self.registry.locations_finder(tokenized.language)

        self.logger.debug(f"Searching for locations mentioned in the text '{cut_text(text)}'...")

        tokens = [token.form for sentence in tokenized.sentences for token in sentence.tokens]
        locations = finder.find(
            tokens=tokens,
            candidates=list(dict.fromkeys(candidates)),
            coordinate_groups=[],
            ambiguity_groups=[]
        )

        return LocationsResult(language=tokenized.language, locations=locations)
