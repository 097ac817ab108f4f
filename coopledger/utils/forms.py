"""Shared form base and fields"""
from flask_wtf import FlaskForm
from wtforms import DateTimeField, Field
from wtforms.validators import StopValidation

DATETIME_FORMATS = ['%Y-%m-%dT%H:%M:%S.%f', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d']

class ApiForm(FlaskForm):
    """Form bound to a JSON request body.

    Flask-WTF reads ``request.get_json()`` when the request is JSON. The API
    authenticates with the session cookie and is not served to browsers as
    HTML forms, so CSRF tokens are not used.
    """
    class Meta:
        csrf = False

class Present:
    """Like InputRequired, but accepts JSON zero and false as supplied values"""
    field_flags = {'required': True}

    def __init__(self, message=None):
        self.message = message

    def __call__(self, form, field):
        if field.raw_data and field.raw_data[0] is not None and field.raw_data[0] != '':
            return
        field.errors[:] = []
        raise StopValidation(self.message or field.gettext('This field is required.'))

class IsoDateTimeField(DateTimeField):
    """DateTimeField accepting ISO 8601 date or date-time strings"""

    def __init__(self, label=None, validators=None, **kwargs):
        kwargs.setdefault('format', DATETIME_FORMATS)
        super().__init__(label, validators, **kwargs)

class IntegerListField(Field):
    """List of integers sent as a JSON array"""

    def process_formdata(self, valuelist):
        try:
            self.data = [int(value) for value in valuelist]
        except (TypeError, ValueError):
            self.data = []
            raise ValueError(self.gettext('Not a valid list of integers.'))
