"""
The extract-frames command: intents and slots of each sentence, for one domain
or for every registered domain.
"""

from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from metrics import track_command

from ..models.base import FrameExtractor, FrameExtractorOutput
from ..registry import Operation, ResourceRegistry
from .base import TokenizingCommand

T = TypeVar("T")


@dataclass
class SentenceFrame:
    """
    The frame extracted from one sentence by one extractor.

    ``distribution`` is None unless it was requested; when present it is sorted
    by descending score.
    """
    forms: List[str]
    output: FrameExtractorOutput
    distribution: Optional[List[Tuple[str, float]]] = None

    @property
    def intent(self) -> str:
        return self.output.intent

    @property
    def score(self) -> float:
        return self.output.score


@dataclass
class FramesResult:
    """Frames by domain, each domain with one entry per sentence in input order."""
    language: str
    frames: Dict[str, List[SentenceFrame]] = field(default_factory=OrderedDict)


class ExtractFrames(TokenizingCommand):
    """
    The command executed on the route '/extract-frames'.

    Without a domain every registered frame extractor runs, and the result has
    one section per domain in registration order.
    """

    name = "extract-frames"
    operation = Operation.EXTRACT_FRAMES

    def __init__(self, registry: ResourceRegistry, workers: int = 1):
        """
        Args:
            registry: The resource registry
            workers: Threads running independent extractors (1 runs them in sequence)
        """
        super().__init__(registry)
        self.workers = workers
        self._executor = (
            ThreadPoolExecutor(max_workers=workers, thread_name_prefix="frame-extractor")
            if workers > 1 else None
        )

    @track_command("extract-frames")
    def run(self,
            text: str,
            language: Optional[str] = None,
            domain: Optional[str] = None,
            distribution: bool = False) -> FramesResult:
        """
        Extract frames from a text.

        Args:
            text: The text from which to extract frames
            language: Force the language of the text
            domain: Run only the frame extractor of this domain
            distribution: Whether to include the sorted intents distribution

        Raises:
            EmptyInput, LanguageNotSupported, LanguageDetectionUnavailable,
            MissingResource, InvalidDomain

        Returns:
            The frames of each sentence by domain
        """
        language, sections = self.extract(
            text,
            language=language,
            domain=domain,
            build=lambda forms, output: self._build_frame(forms, output, distribution)
        )
        return FramesResult(language=language, frames=sections)

    def extract(self,
                text: str,
                build: Callable[[List[str], FrameExtractorOutput], T],
                language: Optional[str] = None,
                domain: Optional[str] = None) -> Tuple[str, Dict[str, List[T]]]:
        """
        Run the frame extractors on each sentence of a text.

        Each sentence is encoded once, then read by every extractor.

        Args:
            text: The input text
            build: Builds the entry of a sentence from its forms and the extractor output
            language: Force the language of the text
            domain: Run only the frame extractor of this domain

        Returns:
            The language of the text and the sentence entries by domain, in
            registration order
        """
        tokenized = self.tokenize(text, language=language)
        tokens_encoder = self.registry.tokens_encoder(tokenized.language)
        extractors = self.registry.frame_extractors(domain)

        sentences_forms = [sentence.forms for sentence in tokenized.sentences]
        encodings = [tokens_encoder.forward(forms) for forms in sentences_forms]

        def run_extractor(extractor: FrameExtractor) -> List[T]:
            return [
                build(forms, extractor.forward(sentence_encodings))
                for forms, sentence_encodings in zip(sentences_forms, encodings)
            ]

        if self._executor is not None and len(extractors) > 1:
            sections = list(self._executor.map(run_extractor, extractors))
        else:
            sections = [run_extractor(extractor) for extractor in extractors]

        self.logger.debug(
            f"Ran {len(extractors)} extractors on {len(sentences_forms)} sentences"
        )
        return tokenized.language, OrderedDict(
            (extractor.domain, section) for extractor, section in zip(extractors, sections)
        )

    @staticmethod
    def _build_frame(forms: List[str], output: FrameExtractorOutput, distribution: bool) -> SentenceFrame:
        return SentenceFrame(
            forms=forms,
            output=output,
            distribution=output.sorted_distribution() if distribution else None
        )

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=False)
