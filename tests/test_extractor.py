# File: tests/test_extractor.py
"""HTML title, content and link extraction."""
from doc_scout.crawler.extractor import UNTITLED, ContentExtractor

BODY_TEXT = "Install the package with pip and import it from your code. " * 3


def test_full_document():
    html = f"""
    <html><head><title> Getting Started </title><script>var x = 1;</script></head>
    <body>
      <nav><a href="/nav-link">Home</a> navigation</nav>
      <div class="sidebar">Sidebar text</div>
      <main><h1>Getting Started</h1><p>{BODY_TEXT}</p><a href="install">Install</a></main>
      <footer>Copyright 2024</footer>
    </body></html>
    """
    page = ContentExtractor().parse(html)

    assert page.title == "Getting Started"
    assert page.links == ["/nav-link", "install"]
    assert "Install the package" in page.content
    assert "Sidebar" not in page.content
    assert "Copyright" not in page.content
    assert "var x" not in page.content
    assert "  " not in page.content


def test_title_fallbacks():
    extractor = ContentExtractor()
    assert extractor.extract_title(extractor.soup("<h1>Heading</h1>")) == "Heading"
    assert extractor.extract_title(extractor.soup('<div class="doc-title">Doc</div>')) == "Doc"
    assert extractor.extract_title(extractor.soup('<div data-title="Attr"></div>')) == "Attr"
    assert extractor.extract_title(extractor.soup("<p>nothing</p>")) == UNTITLED
    assert extractor.extract_title(extractor.soup("<title>  </title><h1>Real</h1>")) == "Real"


def test_short_content_area_falls_back_to_body():
    html = f"<body><article>tiny</article><p>{BODY_TEXT}</p></body>"
    content = ContentExtractor().parse(html).content
    assert content.startswith("tiny")
    assert "Install the package" in content


def test_first_substantial_selector_wins():
    html = f'<body><div class="docs">{BODY_TEXT}</div><div id="other">ignored</div></body>'
    assert ContentExtractor().parse(html).content == BODY_TEXT.strip()


def test_noise_phrases_removed():
    text = "Skip to main content Welcome aboard. Click here to subscribe Follow us on Mastodon"
    assert ContentExtractor.clean_text(text) == "Welcome aboard."


def test_blank_links_skipped():
    html = '<a href="">empty</a><a href="  ">blank</a><a>none</a><a href="/ok"> ok </a>'
    assert ContentExtractor().parse(html).links == ["/ok"]


def test_custom_selectors():
    extractor = ContentExtractor(content_selectors=(".wiki",), remove_selectors=(".ad",))
    html = f'<body><div class="wiki">{BODY_TEXT}<span class="ad">BUY NOW</span></div></body>'
    content = extractor.parse(html).content
    assert "BUY NOW" not in content
    assert content.startswith("Install")
