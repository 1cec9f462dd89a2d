"""Pydantic models for the MediaWiki action API responses we consume."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class WikiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WikiApiError(WikiBaseModel):
    code: str
    info: str = ""


class CategoryMember(WikiBaseModel):
    title: str
    ns: int = 0


class CategoryMembersQuery(WikiBaseModel):
    categorymembers: list[CategoryMember] = Field(default_factory=list)


class CategoryContinue(WikiBaseModel):
    cmcontinue: str | None = None


class CategoryMembersResponse(WikiBaseModel):
    query: CategoryMembersQuery = Field(default_factory=CategoryMembersQuery)
    continuation: CategoryContinue | None = Field(default=None, alias="continue")
    error: WikiApiError | None = None

    @property
    def next_token(self) -> str | None:
        return self.continuation.cmcontinue if self.continuation else None


class ImageSource(WikiBaseModel):
    source: str
    width: int | None = None
    height: int | None = None


class RevisionSlot(WikiBaseModel):
    content: str = Field(default="", alias="*")


class RevisionSlots(WikiBaseModel):
    main: RevisionSlot = Field(default_factory=RevisionSlot)


class Revision(WikiBaseModel):
    slots: RevisionSlots = Field(default_factory=RevisionSlots)


class WikiPage(WikiBaseModel):
    title: str
    pageid: int | None = None
    missing: bool | str | None = None
    fullurl: str | None = None
    thumbnail: ImageSource | None = None
    original: ImageSource | None = None
    revisions: list[Revision] = Field(default_factory=list)

    @property
    def is_missing(self) -> bool:
        return self.missing is not None and self.missing is not False

    @property
    def wikitext(self) -> str:
        return self.revisions[0].slots.main.content if self.revisions else ""


class PageQuery(WikiBaseModel):
    pages: dict[str, WikiPage] = Field(default_factory=dict)


class PageQueryResponse(WikiBaseModel):
    query: PageQuery = Field(default_factory=PageQuery)
    error: WikiApiError | None = None

    def first_page(self) -> WikiPage | None:
        return next(iter(self.query.pages.values()), None)


class ParsedText(WikiBaseModel):
    html: str = Field(default="", alias="*")


class ParseBody(WikiBaseModel):
    title: str | None = None
    text: ParsedText = Field(default_factory=ParsedText)


class ParseResponse(WikiBaseModel):
    parse: ParseBody | None = None
    error: WikiApiError | None = None
