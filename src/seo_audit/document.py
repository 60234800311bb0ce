"""Static HTML analysis producing the DocumentModel consumed by the scorers."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup, Tag

from seo_audit.constants import (
    TITLE_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    LINK_CONTEXT_LANDMARKS,
    DEFAULT_LINK_CONTEXT,
)
from seo_audit.models import CheckStatus, MetaTag, MetaTagAnalysis

LANDMARK_TAGS = ("header", "nav", "main", "footer")

TOUCH_TARGET_SELECTOR = (
    'button, a, input[type="button"], input[type="submit"], [onclick], [role="button"]'
)
TEXT_ELEMENT_SELECTOR = "p, div, span, h1, h2, h3, h4, h5, h6, li, td, th"
HTTP_REQUEST_SELECTOR = 'script, link[rel="stylesheet"], img'
STRUCTURED_DATA_SELECTOR = '[itemtype], script[type="application/ld+json"]'
WEBP_SELECTOR = 'img[src*=".webp"], picture source[type="image/webp"]'

# Elements that take keyboard focus without a tabindex
FOCUSABLE_TAGS = ("a", "button", "input", "select", "textarea", "summary")


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class ImageInfo:
    src: str
    alt: Optional[str]  # None when the alt attribute is missing entirely
    responsive: bool = False  # srcset or sizes
    lazy: bool = False

    @property
    def has_alt_attribute(self) -> bool:
        return self.alt is not None

    @property
    def optimized(self) -> bool:
        return self.responsive or self.lazy


@dataclass(frozen=True)
class Anchor:
    href: str
    text: str
    context: str = DEFAULT_LINK_CONTEXT


@dataclass(frozen=True)
class FormInput:
    id: Optional[str]
    type: str
    has_label: bool  # a <label for=id> exists
    aria_label: Optional[str] = None
    aria_labelledby: Optional[str] = None
    in_form: bool = False


@dataclass(frozen=True)
class StyledElement:
    """Tag name with its inline style and class list, for heuristic checks."""

    tag: str
    style: str = ""
    class_name: str = ""


@dataclass(frozen=True)
class DocumentModel:
    """Structural view of one page. Built once per audit, never mutated."""

    title: str
    meta_tags: MetaTagAnalysis
    lang: Optional[str] = None
    viewport: Optional[str] = None  # content of meta viewport, None if absent
    has_canonical: bool = False
    has_robots_meta: bool = False
    has_sitemap_link: bool = False
    headings: tuple = ()
    images: tuple = ()
    anchors: tuple = ()
    form_inputs: tuple = ()
    form_count: int = 0
    landmarks: frozenset = field(default_factory=frozenset)
    duplicate_ids: tuple = ()
    structured_data_count: int = 0
    json_ld_blocks: tuple = ()
    word_count: int = 0
    http_request_elements: int = 0
    interactive_elements: tuple = ()
    text_elements: tuple = ()
    unnamed_buttons: int = 0
    keyboard_inaccessible: int = 0
    has_webp: bool = False
    has_apple_touch_icon: bool = False
    amp_support: bool = False
    has_screen_media_stylesheet: bool = False
    inline_styles_mention_media: bool = False

    @property
    def h1_count(self) -> int:
        return sum(1 for heading in self.headings if heading.level == 1)

    @property
    def has_viewport(self) -> bool:
        return self.viewport is not None

    def has_landmark(self, tag: str) -> bool:
        return tag in self.landmarks


def classify_length(content: str, minimum: int, maximum: int) -> CheckStatus:
    """good inside [minimum, maximum], warning outside it, error when empty."""
    if not content:
        return CheckStatus.ERROR
    if minimum <= len(content) <= maximum:
        return CheckStatus.GOOD
    return CheckStatus.WARNING


def _presence_tag(content: str) -> MetaTag:
    return MetaTag(
        present=bool(content),
        content=content,
        status=CheckStatus.GOOD if content else CheckStatus.WARNING,
    )


class DocumentAnalyzer:
    """Parses fetched markup into a DocumentModel.

    Parsing is permissive: malformed markup yields a sparse model rather
    than an error.
    """

    def __init__(self, parser: str = "lxml"):
        self.parser = parser

    def analyze(self, html: str) -> DocumentModel:
        """Build the DocumentModel for a page.

        Args:
            html: Page markup

        Returns:
            DocumentModel describing the page structure
        """
        soup = BeautifulSoup(html or "", self.parser)

        title_tag = soup.find("title")
        title = title_tag.get_text().strip() if title_tag else ""

        html_tag = soup.find("html")
        lang = html_tag.get("lang") if html_tag else None

        viewport_tag = soup.find("meta", attrs={"name": "viewport"})
        viewport = viewport_tag.get("content", "") if viewport_tag else None

        body = soup.find("body")
        body_text = body.get_text(separator=" ") if body else ""

        return DocumentModel(
            title=title,
            meta_tags=self._meta_tags(soup, title),
            lang=lang or None,
            viewport=viewport,
            has_canonical=soup.select_one('link[rel="canonical"]') is not None,
            has_robots_meta=soup.find("meta", attrs={"name": "robots"}) is not None,
            has_sitemap_link=soup.select_one('a[href*="sitemap"]') is not None,
            headings=self._headings(soup),
            images=self._images(soup),
            anchors=self._anchors(soup),
            form_inputs=self._form_inputs(soup),
            form_count=len(soup.find_all("form")),
            landmarks=frozenset(tag for tag in LANDMARK_TAGS if soup.find(tag) is not None),
            duplicate_ids=self._duplicate_ids(soup),
            structured_data_count=len(soup.select(STRUCTURED_DATA_SELECTOR)),
            json_ld_blocks=tuple(
                script.get_text()
                for script in soup.find_all("script", attrs={"type": "application/ld+json"})
            ),
            word_count=len(body_text.split()),
            http_request_elements=len(soup.select(HTTP_REQUEST_SELECTOR)),
            interactive_elements=self._styled(soup.select(TOUCH_TARGET_SELECTOR)),
            text_elements=self._styled(soup.select(TEXT_ELEMENT_SELECTOR)),
            unnamed_buttons=self._count_unnamed_buttons(soup),
            keyboard_inaccessible=self._count_keyboard_inaccessible(soup),
            has_webp=soup.select_one(WEBP_SELECTOR) is not None,
            has_apple_touch_icon=soup.select_one('link[rel="apple-touch-icon"]') is not None,
            amp_support=self._has_amp(soup, html_tag),
            has_screen_media_stylesheet=soup.select_one(
                'link[rel="stylesheet"][media*="screen"]'
            ) is not None,
            inline_styles_mention_media=any(
                "media" in style.get_text() for style in soup.find_all("style")
            ),
        )

    def _meta_tags(self, soup: BeautifulSoup, title: str) -> MetaTagAnalysis:
        def by_name(name: str) -> str:
            tag = soup.find("meta", attrs={"name": name})
            return (tag.get("content") or "") if tag else ""

        def by_property(prop: str) -> str:
            tag = soup.find("meta", attrs={"property": prop})
            return (tag.get("content") or "") if tag else ""

        description = by_name("description")

        return MetaTagAnalysis(
            title=MetaTag(
                present=bool(title),
                content=title,
                status=classify_length(title, TITLE_MIN_LENGTH, TITLE_MAX_LENGTH),
            ),
            description=MetaTag(
                present=bool(description),
                content=description,
                status=classify_length(description, DESCRIPTION_MIN_LENGTH, DESCRIPTION_MAX_LENGTH),
            ),
            og_image=_presence_tag(by_property("og:image")),
            og_title=_presence_tag(by_property("og:title")),
            og_description=_presence_tag(by_property("og:description")),
            twitter_card=_presence_tag(by_name("twitter:card")),
            twitter_title=_presence_tag(by_name("twitter:title")),
            twitter_description=_presence_tag(by_name("twitter:description")),
        )

    @staticmethod
    def _headings(soup: BeautifulSoup) -> tuple:
        return tuple(
            Heading(level=int(tag.name[1]), text=tag.get_text(strip=True))
            for tag in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])
        )

    @staticmethod
    def _images(soup: BeautifulSoup) -> tuple:
        return tuple(
            ImageInfo(
                src=img.get("src", ""),
                alt=img.get("alt"),
                responsive=bool(img.get("srcset") or img.get("sizes")),
                lazy=img.get("loading") == "lazy",
            )
            for img in soup.find_all("img")
        )

    def _anchors(self, soup: BeautifulSoup) -> tuple:
        return tuple(
            Anchor(
                href=link["href"].strip(),
                text=link.get_text(" ", strip=True),
                context=self._link_context(link),
            )
            for link in soup.find_all("a", href=True)
        )

    @staticmethod
    def _link_context(link: Tag) -> str:
        """Describe the nearest landmark around a link, e.g. 'nav#main.menu'."""
        parent = link.find_parent(list(LINK_CONTEXT_LANDMARKS))
        if parent is None:
            return DEFAULT_LINK_CONTEXT

        context = parent.name
        element_id = parent.get("id")
        if element_id:
            context += f"#{element_id}"
        classes = parent.get("class") or []
        if classes:
            context += f".{classes[0]}"
        return context

    @staticmethod
    def _form_inputs(soup: BeautifulSoup) -> tuple:
        labelled_ids = {
            label.get("for") for label in soup.find_all("label") if label.get("for")
        }
        inputs = []
        for element in soup.find_all("input"):
            element_id = element.get("id") or None
            inputs.append(
                FormInput(
                    id=element_id,
                    type=(element.get("type") or "text").lower(),
                    has_label=element_id is not None and element_id in labelled_ids,
                    aria_label=element.get("aria-label"),
                    aria_labelledby=element.get("aria-labelledby"),
                    in_form=element.find_parent("form") is not None,
                )
            )
        return tuple(inputs)

    @staticmethod
    def _duplicate_ids(soup: BeautifulSoup) -> tuple:
        counts = Counter(tag["id"] for tag in soup.find_all(id=True))
        return tuple(element_id for element_id, count in counts.items() if count > 1)

    @staticmethod
    def _styled(elements) -> tuple:
        return tuple(
            StyledElement(
                tag=element.name,
                style=element.get("style", ""),
                class_name=" ".join(element.get("class") or []),
            )
            for element in elements
        )

    @staticmethod
    def _count_unnamed_buttons(soup: BeautifulSoup) -> int:
        count = 0
        for button in soup.find_all("button"):
            if button.get_text(strip=True):
                continue
            if button.get("aria-label") or button.get("aria-labelledby") or button.get("title"):
                continue
            count += 1
        return count

    @staticmethod
    def _count_keyboard_inaccessible(soup: BeautifulSoup) -> int:
        return sum(
            1
            for element in soup.find_all(attrs={"onclick": True})
            if element.name not in FOCUSABLE_TAGS and not element.has_attr("tabindex")
        )

    @staticmethod
    def _has_amp(soup: BeautifulSoup, html_tag: Optional[Tag]) -> bool:
        if html_tag is not None and (html_tag.has_attr("amp") or html_tag.has_attr("⚡")):
            return True
        return soup.select_one('link[rel="amphtml"]') is not None
