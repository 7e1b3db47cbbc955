"""User lookup on top of the store."""

from pydantic import BaseModel

requires = ["app.store"]
version = "1.1.0"


class User(BaseModel):
    """A user known to the store."""

    user_id: str
    name: str
    email: str


def attach(context, config):
    records = context.namespace("app.store").records

    def get_user(user_id):
        record = records.get(user_id)
        if record is None:
            return None
        return User(user_id=user_id, **record)

    context.namespace("app.users").get_user = get_user
