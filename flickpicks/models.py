"""Pydantic models describing catalog payloads and user profiles."""

from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .utils import dedupe

InteractionType = Literal["click", "favorite", "watchlist", "search"]
CollectionAction = Literal["add", "remove"]

DEFAULT_MIN_RATING = 6.0


class Genre(BaseModel):
    id: int
    name: str = ""


class Movie(BaseModel):
    """A movie as returned by catalog list endpoints."""

    model_config = ConfigDict(extra="allow")

    id: int
    title: str = ""
    overview: str = ""
    poster_path: str | None = None
    backdrop_path: str | None = None
    release_date: str | None = None
    vote_average: float = 0.0
    vote_count: int = 0
    popularity: float = 0.0
    genre_ids: list[int] = Field(default_factory=list)

    @field_validator("title", "overview", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("vote_average", "vote_count", "popularity", mode="before")
    @classmethod
    def _none_to_zero(cls, value: object) -> object:
        return 0.0 if value is None else value


class MovieDetails(Movie):
    """Extended movie record returned by ``/movie/{id}``."""

    genres: list[Genre] = Field(default_factory=list)
    runtime: int | None = None
    tagline: str | None = None
    imdb_id: str | None = None

    @property
    def genre_id_list(self) -> list[int]:
        """Genre ids, preferring the detailed ``genres`` payload."""

        if self.genres:
            return [genre.id for genre in self.genres]
        return list(self.genre_ids)


class MoviesPage(BaseModel):
    """Paginated list response."""

    page: int = 1
    results: list[Movie] = Field(default_factory=list)
    total_pages: int = 0
    total_results: int = 0


class CastMember(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str = ""
    character: str | None = None
    order: int | None = None


class CrewMember(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str = ""
    job: str | None = None
    department: str | None = None


class MovieCredits(BaseModel):
    id: int
    cast: list[CastMember] = Field(default_factory=list)
    crew: list[CrewMember] = Field(default_factory=list)

    def directors(self) -> list[CrewMember]:
        return [member for member in self.crew if member.job == "Director"]


class DiscoverQuery(BaseModel):
    """Filters for the catalog discovery endpoint."""

    sort_by: str = "popularity.desc"
    min_rating: float | None = None
    genres: list[int] = Field(default_factory=list)
    release_date_gte: str | None = None
    release_date_lte: str | None = None
    page: int = Field(default=1, ge=1)

    @classmethod
    def for_decade(cls, decade: int, **kwargs: Any) -> "DiscoverQuery":
        """Restrict a query to the ten-year span starting at ``decade``."""

        return cls(
            release_date_gte=f"{decade}-01-01",
            release_date_lte=f"{decade + 9}-12-31",
            **kwargs,
        )

    def to_params(self) -> dict[str, str | int | float]:
        params: dict[str, str | int | float] = {
            "sort_by": self.sort_by,
            "page": self.page,
        }
        if self.min_rating is not None:
            params["vote_average.gte"] = self.min_rating
        if self.genres:
            # TMDB treats a comma-separated list as a logical OR.
            params["with_genres"] = ",".join(str(genre) for genre in self.genres)
        if self.release_date_gte:
            params["primary_release_date.gte"] = self.release_date_gte
        if self.release_date_lte:
            params["primary_release_date.lte"] = self.release_date_lte
        return params


class _CamelModel(BaseModel):
    """Base for records persisted as camelCase JSON."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class InteractionEvent(_CamelModel):
    """A timestamped user action referencing a movie."""

    model_config = ConfigDict(
        populate_by_name=True, alias_generator=to_camel, frozen=True
    )

    movie_id: int
    type: InteractionType
    timestamp: int
    metadata: dict[str, Any] | None = None

    @property
    def action(self) -> str | None:
        if not self.metadata:
            return None
        action = self.metadata.get("action")
        return str(action) if action is not None else None


class Preferences(_CamelModel):
    """Derived summary of genre, decade and rating affinity."""

    favorite_genres: list[int] = Field(default_factory=list)
    disliked_genres: list[int] = Field(default_factory=list)
    preferred_release_decades: list[int] = Field(default_factory=list)
    min_rating: float = DEFAULT_MIN_RATING
    liked_keywords: list[str] = Field(default_factory=list)
    favorite_directors: list[int] = Field(default_factory=list)
    favorite_actors: list[int] = Field(default_factory=list)

    @field_validator(
        "favorite_genres",
        "disliked_genres",
        "preferred_release_decades",
        "liked_keywords",
        "favorite_directors",
        "favorite_actors",
        mode="before",
    )
    @classmethod
    def _none_to_list(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("min_rating", mode="before")
    @classmethod
    def _default_min_rating(cls, value: object) -> object:
        return DEFAULT_MIN_RATING if value is None else value

    def merged(self, changes: Mapping[str, Any]) -> "Preferences":
        """Return a validated copy with ``changes`` applied.

        Keys may be given in snake_case or camelCase; unknown keys are ignored.
        """

        aliases = {
            name: field.alias or name for name, field in Preferences.model_fields.items()
        }
        aliases.update({alias: alias for alias in list(aliases.values())})
        payload = self.model_dump(by_alias=True)
        payload.update(
            {aliases[key]: value for key, value in changes.items() if key in aliases}
        )
        return Preferences.model_validate(payload)


class Profile(_CamelModel):
    """Per-user personalization record."""

    id: str
    email: str = ""
    name: str = ""
    favorites: list[int] = Field(default_factory=list)
    watchlist: list[int] = Field(default_factory=list)
    interactions: list[InteractionEvent] = Field(default_factory=list)
    search_history: list[str] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)

    @field_validator("email", "name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator(
        "favorites", "watchlist", "interactions", "search_history", mode="before"
    )
    @classmethod
    def _none_to_list(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("favorites", "watchlist")
    @classmethod
    def _unique_ids(cls, value: list[int]) -> list[int]:
        return dedupe(value)

    @field_validator("preferences", mode="before")
    @classmethod
    def _coerce_preferences(cls, value: object) -> object:
        # Older records stored ``{}`` or nothing at all.
        if isinstance(value, (dict, Preferences)):
            return value
        return {}

    @classmethod
    def new(cls, user_id: str) -> "Profile":
        return cls(id=user_id)

    def normalized(
        self, *, interaction_limit: int, search_limit: int
    ) -> "Profile":
        """Return the profile trimmed to the configured history bounds."""

        return self.model_copy(
            update={
                "interactions": self.interactions[:interaction_limit],
                "search_history": dedupe(self.search_history)[:search_limit],
            }
        )
