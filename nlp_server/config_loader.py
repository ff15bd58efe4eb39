"""
Resources configuration loader.

Loads the description of the per-language resources from a YAML file and
builds the resource registry from it. Relative paths are resolved against the
directory of the configuration file.

Example::

    language_detector:
      enabled: true
    languages:
      en:
        tokenizer: {model: en_core_web_sm}
        preprocessor: {lexicon: models/en/morphology.json}
        parser: {model: en_core_web_sm}
        encoder: {model: models/en/encoder.npz}
        embeddings: models/en/embeddings.vec
    frame_extractors:
      - models/frames/travel.json
    locations:
      dictionary: data/locations.json
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import ResourceConfigurationError
from .language_detector import StopwordLanguageDetector
from .models.encoder import ContextEncoderModel, EmbeddingsMapByDictionary
from .models.frame_extractor import LinearFrameExtractor
from .models.geolocation import LocationsDictionary
from .models.preprocessors import MorphoPreprocessor
from .models.spacy_provider import SpacyParser, SpacyTokenizer, load_pipeline
from .registry import ResourceBundle, ResourceRegistry
from .resolver import LANGUAGE_CODE_PATTERN, normalize_language_code

logger = logging.getLogger(__name__)


@dataclass
class LanguageConfig:
    """Resources of one language"""
    code: str
    tokenizer_model: Optional[str] = None
    lexicon: Optional[Path] = None
    parser_model: Optional[str] = None
    encoder_model: Optional[Path] = None
    embeddings: Optional[Path] = None


@dataclass
class ResourcesConfig:
    """Complete resources configuration"""
    languages: List[LanguageConfig] = field(default_factory=list)
    frame_extractors: List[Path] = field(default_factory=list)
    locations_dictionary: Optional[Path] = None
    detector_enabled: bool = True
    detector_languages: Optional[List[str]] = None
    detector_stopwords: Dict[str, List[str]] = field(default_factory=dict)


def _resolve_path(base_dir: Path, value: Optional[str]) -> Optional[Path]:
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else base_dir / path


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ResourceConfigurationError(f"Section '{key}' must be a mapping")
    return value


def parse_resources_config(data: Dict[str, Any], base_dir: Path) -> ResourcesConfig:
    """
    Convert the content of a configuration file into a ResourcesConfig.

    Raises:
        ResourceConfigurationError: If the content is malformed
    """
    if not isinstance(data, dict):
        raise ResourceConfigurationError("The resources configuration must be a mapping")

    languages = []
    for raw_code, lang_data in _section(data, "languages").items():
        code = normalize_language_code(str(raw_code))
        if not LANGUAGE_CODE_PATTERN.match(code):
            raise ResourceConfigurationError(f"Invalid language code: '{raw_code}'")

        lang_data = lang_data or {}
        if not isinstance(lang_data, dict):
            raise ResourceConfigurationError(f"Resources of language '{code}' must be a mapping")

        languages.append(LanguageConfig(
            code=code,
            tokenizer_model=_section(lang_data, "tokenizer").get("model"),
            lexicon=_resolve_path(base_dir, _section(lang_data, "preprocessor").get("lexicon")),
            parser_model=_section(lang_data, "parser").get("model"),
            encoder_model=_resolve_path(base_dir, _section(lang_data, "encoder").get("model")),
            embeddings=_resolve_path(base_dir, lang_data.get("embeddings"))
        ))

    extractors = data.get("frame_extractors") or []
    if not isinstance(extractors, list):
        raise ResourceConfigurationError("Section 'frame_extractors' must be a list of paths")

    detector = _section(data, "language_detector")

    return ResourcesConfig(
        languages=languages,
        frame_extractors=[_resolve_path(base_dir, p) for p in extractors],
        locations_dictionary=_resolve_path(base_dir, _section(data, "locations").get("dictionary")),
        detector_enabled=bool(detector.get("enabled", True)),
        detector_languages=detector.get("languages"),
        detector_stopwords=detector.get("stopwords") or {}
    )


def load_resources_config(path: str) -> ResourcesConfig:
    """
    Load the resources configuration from a YAML file.

    Raises:
        ResourceConfigurationError: If the file is missing or malformed
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ResourceConfigurationError(f"Resources configuration not found: {path}", path=str(path))

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ResourceConfigurationError(
            f"Invalid resources configuration: {e}", path=str(path), original_error=e
        ) from e

    config = parse_resources_config(data, base_dir=config_path.parent)
    logger.info(
        f"Loaded resources configuration from {path}: "
        f"{len(config.languages)} languages, {len(config.frame_extractors)} frame extractors"
    )
    return config


def build_registry(config: ResourcesConfig,
                   strict: bool = False,
                   enable_language_detector: bool = True) -> ResourceRegistry:
    """
    Load every resource of a configuration and build the registry.

    spaCy pipelines are loaded once per model name and shared by the
    tokenizer and the parser that use them.

    Raises:
        ResourceConfigurationError: If a resource file cannot be loaded
        MissingResource: In strict mode, if an encoder has no embeddings
    """
    pipelines: Dict[str, Any] = {}

    def pipeline(model: Optional[str], code: str):
        key = model or f"blank:{code}"
        if key not in pipelines:
            pipelines[key] = load_pipeline(model, code)
        return pipelines[key]

    def load(kind: str, path: Path, loader):
        try:
            return loader(str(path))
        except (OSError, ValueError, KeyError) as e:
            raise ResourceConfigurationError(
                f"Cannot load {kind} from {path}: {e}", path=str(path), original_error=e
            ) from e

    bundles = []
    for lang in config.languages:
        tokenizer = SpacyTokenizer(lang.code, model_name=lang.tokenizer_model,
                                   nlp=pipeline(lang.tokenizer_model, lang.code))
        parser = None
        if lang.parser_model:
            parser = SpacyParser(lang.parser_model, language=lang.code,
                                 nlp=pipeline(lang.parser_model, lang.code))

        bundles.append(ResourceBundle(
            language=lang.code,
            tokenizer=tokenizer,
            preprocessor=(
                load("morphological lexicon", lang.lexicon,
                     lambda p: MorphoPreprocessor.from_file(p, language=lang.code))
                if lang.lexicon else None
            ),
            encoder=load("encoder model", lang.encoder_model, ContextEncoderModel.load) if lang.encoder_model else None,
            parser=parser,
            embeddings=load("embeddings", lang.embeddings, EmbeddingsMapByDictionary.load) if lang.embeddings else None
        ))

    extractors = [load("frame extractor", path, LinearFrameExtractor.load) for path in config.frame_extractors]

    dictionary = None
    if config.locations_dictionary:
        dictionary = load("locations dictionary", config.locations_dictionary, LocationsDictionary.load)

    detector = None
    if enable_language_detector and config.detector_enabled:
        detector = StopwordLanguageDetector(
            languages=config.detector_languages or [lang.code for lang in config.languages],
            stopwords={k: set(v) for k, v in config.detector_stopwords.items()}
        )

    return ResourceRegistry(
        bundles=bundles,
        frame_extractors=extractors,
        language_detector=detector,
        locations_dictionary=dictionary,
        strict=strict
    )
