"""Forms for the tournament blueprint."""

from flask_wtf import FlaskForm
from wtforms import (
    DateTimeLocalField,
    DecimalField,
    IntegerField,
    SelectField,
    StringField,
)
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional


class TournamentForm(FlaskForm):
    """Form for creating a tournament with its prize configuration."""

    title = StringField("Title", validators=[DataRequired()])

    start_time = DateTimeLocalField(
        "Start Time", format="%Y-%m-%dT%H:%M", validators=[DataRequired()]
    )

    match_type = SelectField(
        "Match Type",
        choices=[("solo", "Solo"), ("duo", "Duo"), ("squad", "Squad")],
        validators=[DataRequired()],
        default="squad",
    )

    entry_fee = DecimalField(
        "Entry Fee",
        validators=[InputRequired(), NumberRange(min=0, message="Entry fee must be 0 or greater")],
    )

    total_players = IntegerField(
        "Total Players",
        validators=[InputRequired(), NumberRange(min=1, message="Must have at least 1 player")],
    )

    max_teams = IntegerField("Max Teams", validators=[Optional(), NumberRange(min=1)])

    company_commission_percentage = DecimalField(
        "Company Commission (%)",
        validators=[
            InputRequired(),
            NumberRange(
                min=0,
                max=100,
                message="Commission must be between %(min)s-%(max)s%%",
            ),
        ],
    )

    first_prize = DecimalField(
        "1st Prize",
        validators=[InputRequired(), NumberRange(min=0, message="1st Prize must be 0 or greater")],
    )

    per_kill_reward = DecimalField(
        "Per Kill Reward",
        validators=[
            InputRequired(),
            NumberRange(min=0, message="Per Kill Reward must be 0 or greater"),
        ],
    )

    room_id = StringField("Room ID", validators=[Optional()])

    room_password = StringField("Room Password", validators=[Optional()])

    def to_data(self) -> dict:
        """Return the submitted values as plain Python numbers and strings."""
        return {
            "title": self.title.data,
            "start_time": self.start_time.data,
            "match_type": self.match_type.data,
            "entry_fee": float(self.entry_fee.data),
            "total_players": self.total_players.data,
            "max_teams": self.max_teams.data,
            "company_commission_percentage": float(
                self.company_commission_percentage.data
            ),
            "first_prize": float(self.first_prize.data),
            "per_kill_reward": float(self.per_kill_reward.data),
            "room_id": self.room_id.data,
            "room_password": self.room_password.data,
        }
