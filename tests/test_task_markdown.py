from markupsafe import Markup

from models.task import Task, TaskFile, TaskFileMetadata, render_task_description_html


def test_nested_lists_use_expected_hierarchy():
    description = "- parent\n  - child\n  - child 2"

    html = render_task_description_html(description)
    html_str = str(html)

    assert isinstance(html, Markup)
    assert "<li>parent<ul>" in html_str
    assert "<li>child</li>" in html_str
    assert "<li>child 2</li>" in html_str


def test_empty_description_returns_empty_markup():
    html = render_task_description_html(None)

    assert isinstance(html, Markup)
    assert str(html) == ""


def test_disallowed_tags_are_sanitized():
    html = render_task_description_html("<script>alert('x')</script>")

    assert "<script" not in str(html).lower()


def test_task_description_html_renders_summary():
    task_file = TaskFile(
        metadata=TaskFileMetadata(id="task-1", title="Render"),
        content="**bold** start\nsecond line",
    )

    html = str(Task.from_task_file(task_file).description_html)

    assert "<strong>bold</strong>" in html
    assert "second line" in html
