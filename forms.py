from wtforms import BooleanField, Form, IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, NumberRange, Optional

from models.activity import ActivityLevel, ActivityType
from services.github_service import DEFAULT_PER_PAGE, MAX_PAGE, MAX_PER_PAGE

SORT_CHOICES = [
    ("created", "Created"),
    ("updated", "Updated"),
    ("pushed", "Pushed"),
    ("full_name", "Name"),
]
SEARCH_SORT_CHOICES = [
    ("stars", "Stars"),
    ("forks", "Forks"),
    ("help-wanted-issues", "Help wanted issues"),
    ("updated", "Updated"),
]
DIRECTION_CHOICES = [("asc", "Ascending"), ("desc", "Descending")]
TYPE_CHOICES = [
    ("all", "All"),
    ("owner", "Owner"),
    ("public", "Public"),
    ("private", "Private"),
    ("member", "Member"),
]


def first_error(form):
    """Return the first validation message of ``form``."""
    for messages in form.errors.values():
        if messages:
            return messages[0]
    return "Invalid request parameters."


class RepositoriesQueryForm(Form):
    page = IntegerField(
        "Page",
        default=1,
        validators=[
            NumberRange(min=1, max=MAX_PAGE, message=f"Page must be between 1 and {MAX_PAGE}")
        ],
    )
    per_page = IntegerField(
        "Per page",
        default=DEFAULT_PER_PAGE,
        validators=[
            NumberRange(
                min=1, max=MAX_PER_PAGE, message=f"Per page must be between 1 and {MAX_PER_PAGE}"
            )
        ],
    )
    sort = SelectField("Sort", choices=SORT_CHOICES, default="updated")
    direction = SelectField("Direction", choices=DIRECTION_CHOICES, default="desc")
    type = SelectField("Type", choices=TYPE_CHOICES, default="all")


class RepositoryEventsForm(Form):
    per_page = IntegerField(
        "Per page",
        default=DEFAULT_PER_PAGE,
        validators=[
            NumberRange(
                min=1, max=MAX_PER_PAGE, message=f"Per page must be between 1 and {MAX_PER_PAGE}"
            )
        ],
    )


class FetchAllRepositoriesForm(Form):
    maxPages = IntegerField(
        "Max pages",
        default=10,
        validators=[NumberRange(min=1, max=MAX_PAGE, message="maxPages must be a positive number")],
    )
    sort = SelectField("Sort", choices=SORT_CHOICES, default="updated")
    direction = SelectField("Direction", choices=DIRECTION_CHOICES, default="desc")
    type = SelectField("Type", choices=TYPE_CHOICES, default="all")


class RepositorySearchForm(Form):
    query = StringField("Query", [DataRequired(message="Search query is required")])
    sort = SelectField("Sort", choices=SEARCH_SORT_CHOICES, default="updated")
    order = SelectField("Order", choices=DIRECTION_CHOICES, default="desc")
    per_page = IntegerField(
        "Per page",
        default=DEFAULT_PER_PAGE,
        validators=[
            NumberRange(
                min=1, max=MAX_PER_PAGE, message=f"Per page must be between 1 and {MAX_PER_PAGE}"
            )
        ],
    )
    page = IntegerField(
        "Page",
        default=1,
        validators=[
            NumberRange(min=1, max=MAX_PAGE, message=f"Page must be between 1 and {MAX_PAGE}")
        ],
    )


ACTIVITY_TYPE_CHOICES = [("all", "All")] + [(value.value, value.name.title()) for value in ActivityType]
ACTIVITY_LEVEL_CHOICES = [("all", "All")] + [(value.value, value.name.title()) for value in ActivityLevel]
EXPORT_FORMAT_CHOICES = [("json", "JSON"), ("csv", "CSV")]


class ActivityLogQueryForm(Form):
    type = SelectField("Type", choices=ACTIVITY_TYPE_CHOICES, default="all")
    level = SelectField("Level", choices=ACTIVITY_LEVEL_CHOICES, default="all")
    startDate = StringField("Start date")
    endDate = StringField("End date")
    q = StringField("Search")
    repositoryId = IntegerField("Repository id", validators=[Optional()])


class ActivityLogExportForm(ActivityLogQueryForm):
    format = SelectField("Format", choices=EXPORT_FORMAT_CHOICES, default="json")
    includeMetadata = BooleanField(
        "Include metadata", default=False, false_values=("false", "0", "")
    )


class ActivityLogEntryForm(Form):
    type = SelectField("Type", choices=ACTIVITY_TYPE_CHOICES[1:])
    level = SelectField("Level", choices=ACTIVITY_LEVEL_CHOICES[1:], default="info")
    title = StringField("Title", [DataRequired(message="Title is required")])
    description = StringField("Description", [DataRequired(message="Description is required")])
