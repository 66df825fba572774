from datetime import datetime, timezone

from folio.collections import PostCollection
from folio.config import Section, SiteConfig
from folio.content import Post
from folio.github import RepoSummary
from folio.templates import PageComposer


def make_post(slug, title="Post", section=Section.POSTS, day=1, content="<p>Body</p>", spoiler=None):
    return Post(
        slug=slug,
        title=title,
        date=datetime(2024, 1, day, tzinfo=timezone.utc),
        spoiler=spoiler,
        content=content,
        section=section,
    )


def empty_sections():
    return {section: PostCollection() for section in Section}


def make_composer(tmp_path, **kwargs) -> PageComposer:
    return PageComposer(SiteConfig(root=tmp_path, content_dir=tmp_path, **kwargs))


def test_empty_index_has_three_placeholders(tmp_path):
    composer = make_composer(tmp_path)
    html = composer.index_content(empty_sections(), [])
    assert "No blog posts yet." in html
    assert "No projects yet." in html
    assert "No talks yet." in html
    assert "post-item" not in html


def test_index_with_missing_sections_renders_empty(tmp_path):
    html = make_composer(tmp_path).index_content({}, [])
    assert "No blog posts yet." in html
    assert "No talks yet." in html


def test_index_lists_posts_with_links_and_dates(tmp_path):
    posts = empty_sections()
    posts[Section.POSTS] = PostCollection(
        [make_post("first", "First", day=1), make_post("second", "Second", day=15)]
    )
    posts[Section.TALKS] = PostCollection([make_post("talk", "A Talk", Section.TALKS, day=3)])
    html = make_composer(tmp_path).index_content(posts, [])

    assert 'href="/posts/first"' in html
    assert 'href="/talks/talk"' in html
    assert "Jan 15, 2024 - " in html
    assert html.index("Second") < html.index("First")
    assert "No blog posts yet." not in html
    assert "No talks yet." not in html


def test_projects_listing_uses_repositories(tmp_path):
    posts = empty_sections()
    posts[Section.PROJECTS] = PostCollection([make_post("ignored", "Ignored Project", Section.PROJECTS)])
    repos = [
        RepoSummary(
            name="folio",
            url="https://github.com/me/folio",
            star_count=12,
            description="Static <site> generator",
            primary_language="Python",
        ),
        RepoSummary(name="tiny", url="https://github.com/me/tiny", star_count=0),
    ]
    html = make_composer(tmp_path).index_content(posts, repos)
    assert '<a href="https://github.com/me/folio" target="_blank" rel="noopener noreferrer">folio</a> ★ 12 · Python' in html
    assert "Static &lt;site&gt; generator" in html
    assert '<a href="https://github.com/me/tiny" target="_blank" rel="noopener noreferrer">tiny</a></div>' in html
    assert "Ignored Project" not in html
    assert "No projects yet." not in html


def test_fragment_is_substring_of_full_page(tmp_path):
    composer = make_composer(tmp_path, name="Jane")
    posts = empty_sections()
    posts[Section.POSTS] = PostCollection([make_post("a", "A & B")])
    repos = [RepoSummary(name="r", url="https://example.com/r", star_count=3)]

    fragment = composer.index_content(posts, repos)
    full = composer.index_page(posts, repos)
    assert fragment in full
    assert full.startswith("<!DOCTYPE html>")
    assert "<title>Jane</title>" in full

    post = make_post("a", "A & B", content="<p>trusted <b>html</b></p>")
    assert composer.post_content(post) in composer.post_page(post)


def test_post_content_escapes_metadata_but_not_body(tmp_path):
    post = make_post(
        "x",
        title="<script>alert(1)</script>",
        content="<p>Some <em>text</em></p>",
        spoiler="Tom & Jerry",
    )
    html = make_composer(tmp_path).post_content(post)
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "<script>alert(1)</script>" not in html
    assert "<p>Some <em>text</em></p>" in html
    assert "Tom &amp; Jerry" in html
    assert "January 1, 2024" in html
    assert 'href="/"' in html


def test_post_footer_links(tmp_path):
    composer = make_composer(
        tmp_path,
        url="https://jane.dev",
        repository="jane.dev",
        links={"github": "jane"},
    )
    html = composer.post_content(make_post("hello-world", "Hello World"))
    assert "https://github.com/jane/jane.dev/edit/main/posts/hello-world/index.md" in html
    assert "url=https%3A//jane.dev/posts/hello-world" in html
    assert "text=Hello%20World" in html

    bare = make_composer(tmp_path).post_content(make_post("hello-world"))
    assert "article-footer" not in bare


def test_section_list_fragment(tmp_path):
    composer = make_composer(tmp_path)
    posts = PostCollection([make_post("one", "One", Section.TALKS)])
    html = composer.section_list(Section.TALKS, posts)
    assert html.count('class="post-item"') == 1
    assert 'href="/talks/one"' in html
    assert "<h2>" not in html
    assert "No talks yet." in composer.section_list(Section.TALKS, PostCollection())


def test_layout_contains_chrome(tmp_path):
    composer = make_composer(
        tmp_path, name="Jane & Co", links={"email": "j@example.com", "twitter": "jane"}
    )
    html = composer.layout("Title", "<p>inner</p>")
    assert '<div id="content"><p>inner</p></div>' in html
    assert "Jane &amp; Co" in html
    assert 'href="mailto:j@example.com"' in html
    assert 'href="https://twitter.com/jane"' in html
    assert "htmx.org" in html
    assert ".highlight" in html


def test_not_found_views(tmp_path):
    composer = make_composer(tmp_path)
    fragment = composer.not_found_content("No posts entry named 'x'.")
    assert "No posts entry named &#39;x&#39;." in fragment
    assert fragment in composer.not_found_page("No posts entry named 'x'.")
