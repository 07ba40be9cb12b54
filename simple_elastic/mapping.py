"""
Index mappings

Property builds the mapping of a single field, e.g.

    Property.text().analyzer("dutch").fields(Map(raw=Property.keyword().ignore_above(256)))

Properties collects the field mappings for a pydantic document model. Its keys are model
attribute names, which are translated into the names the documents are serialized with:

    class Article(BaseModel):
        model_config = ConfigDict(alias_generator=to_camel)
        published_at: datetime

    Properties(Article, published_at=Property.date())  # {"publishedAt": {"type": "date"}}
"""

from typing import Any

from pydantic import BaseModel

from simple_elastic.errors import InvalidArgumentError
from simple_elastic.map import Map


def name_of(model: type[BaseModel], attribute: str) -> str:
    """
    The name a model attribute is serialized with: its serialization alias or alias if it has one
    (this includes aliases set by an alias generator), otherwise the attribute name itself.
    """
    field = model.model_fields.get(attribute)
    if field is None:
        raise InvalidArgumentError(f"{model.__name__} has no attribute {attribute!r}")
    return field.serialization_alias or field.alias or attribute


class Properties(Map):
    """Field mappings keyed by the serialized names of the attributes of a pydantic model"""

    def __init__(self, model: type[BaseModel], entries: Any = None, **properties: Any):
        object.__setattr__(self, "_model", model)
        super().__init__(entries, **properties)

    def set(self, key: str, value: Any) -> "Properties":
        super().set(name_of(self._model, key), value)
        return self

    def __repr__(self):
        return f"Properties({self._model.__name__}, {self._values!r})"


class Property(Map):
    """The mapping of a single field. Setters return the property itself, so they can be chained"""

    def __init__(self, type: str):
        super().__init__()
        self.set("type", type)

    def _option(self, name: str, value: Any) -> "Property":
        self.set(name, value)
        return self

    def analyzer(self, analyzer: str) -> "Property":
        return self._option("analyzer", analyzer)

    def normalizer(self, normalizer: str) -> "Property":
        return self._option("normalizer", normalizer)

    def boost(self, boost: float) -> "Property":
        return self._option("boost", boost)

    def fields(self, fields: Any) -> "Property":
        """Multi-fields, e.g. Map(raw=Property.keyword())"""
        return self._option("fields", fields)

    def copy_to(self, copy_to: str | list[str]) -> "Property":
        return self._option("copy_to", copy_to)

    def doc_values(self, doc_values: bool) -> "Property":
        return self._option("doc_values", doc_values)

    def dynamic(self, dynamic: bool | str) -> "Property":
        return self._option("dynamic", dynamic)

    def enabled(self, enabled: bool) -> "Property":
        return self._option("enabled", enabled)

    def fielddata(self, fielddata: bool) -> "Property":
        return self._option("fielddata", fielddata)

    def ignore_above(self, ignore_above: int) -> "Property":
        return self._option("ignore_above", ignore_above)

    def ignore_malformed(self, ignore_malformed: bool) -> "Property":
        return self._option("ignore_malformed", ignore_malformed)

    def index_options(self, index_options: str) -> "Property":
        return self._option("index_options", index_options)

    def index(self, index: bool) -> "Property":
        return self._option("index", index)

    def index_phrases(self, index_phrases: bool) -> "Property":
        return self._option("index_phrases", index_phrases)

    def norms(self, norms: bool) -> "Property":
        return self._option("norms", norms)

    def null_value(self, null_value: Any) -> "Property":
        return self._option("null_value", null_value)

    def position_increment_gap(self, gap: int) -> "Property":
        return self._option("position_increment_gap", gap)

    def properties(self, properties: Any) -> "Property":
        """Sub-field mappings of an object or nested property"""
        return self._option("properties", properties)

    def search_analyzer(self, search_analyzer: str) -> "Property":
        return self._option("search_analyzer", search_analyzer)

    def similarity(self, similarity: str) -> "Property":
        return self._option("similarity", similarity)

    def store(self, store: bool) -> "Property":
        return self._option("store", store)

    def eager_global_ordinals(self, eager_global_ordinals: bool) -> "Property":
        return self._option("eager_global_ordinals", eager_global_ordinals)

    def term_vector(self, term_vector: str) -> "Property":
        return self._option("term_vector", term_vector)

    # Constructors for the field types. Some of these shadow builtin names in the class namespace,
    # so they come after everything that could use those names in an annotation.

    @classmethod
    def text(cls) -> "Property":
        return cls("text")

    @classmethod
    def keyword(cls) -> "Property":
        return cls("keyword")

    @classmethod
    def date(cls) -> "Property":
        return cls("date")

    @classmethod
    def long(cls) -> "Property":
        return cls("long")

    @classmethod
    def integer(cls) -> "Property":
        return cls("integer")

    @classmethod
    def short(cls) -> "Property":
        return cls("short")

    @classmethod
    def byte(cls) -> "Property":
        return cls("byte")

    @classmethod
    def double(cls) -> "Property":
        return cls("double")

    @classmethod
    def half_float(cls) -> "Property":
        return cls("half_float")

    @classmethod
    def scaled_float(cls, scaling_factor: float | None = None) -> "Property":
        result = cls("scaled_float")
        result.add("scaling_factor", scaling_factor, scaling_factor is not None)
        return result

    @classmethod
    def boolean(cls) -> "Property":
        return cls("boolean")

    @classmethod
    def ip(cls) -> "Property":
        return cls("ip")

    @classmethod
    def nested(cls) -> "Property":
        return cls("nested")

    @classmethod
    def geo_point(cls) -> "Property":
        return cls("geo_point")

    @classmethod
    def geo_shape(cls) -> "Property":
        return cls("geo_shape")

    @classmethod
    def completion(cls) -> "Property":
        return cls("completion")

    @classmethod
    def float(cls) -> "Property":
        return cls("float")

    @classmethod
    def object(cls) -> "Property":
        return cls("object")
