"""
The label command: the IOB slot label of each token, for one domain or for
every registered domain.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from metrics import track_command

from ..models.base import FrameExtractorOutput, TokenLabel
from .extract_frames import ExtractFrames


@dataclass
class LabelledToken:
    form: str
    label: TokenLabel


@dataclass
class SentenceLabeling:
    """The tokens of one sentence labelled by one extractor."""
    tokens: List[LabelledToken]


@dataclass
class LabelingsResult:
    """Labelings by domain, each domain with one entry per sentence in input order."""
    language: str
    labelings: Dict[str, List[SentenceLabeling]] = field(default_factory=OrderedDict)


class Label(ExtractFrames):
    """
    The command executed on the route '/label'.

    Runs the same extractors as '/extract-frames' and fails the same way, but
    reports the label given to each token instead of the intents and slots.
    """

    name = "label"

    @track_command("label")
    def run(self,
            text: str,
            language: Optional[str] = None,
            domain: Optional[str] = None) -> LabelingsResult:
        """
        Label the tokens of a text.

        Args:
            text: The text to label
            language: Force the language of the text
            domain: Run only the frame extractor of this domain

        Raises:
            EmptyInput, LanguageNotSupported, LanguageDetectionUnavailable,
            MissingResource, InvalidDomain

        Returns:
            The labelings of each sentence by domain
        """
        language, sections = self.extract(text, build=self._build_labeling, language=language, domain=domain)
        return LabelingsResult(language=language, labelings=sections)

    @staticmethod
    def _build_labeling(forms: List[str], output: FrameExtractorOutput) -> SentenceLabeling:
        return SentenceLabeling(tokens=[
            LabelledToken(form=form, label=label) for form, label in zip(forms, output.token_labels)
        ])
