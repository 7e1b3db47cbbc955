"""Greet users by name."""

requires = ["app.users", "condotti.logging"]


def attach(context, config):
    logger = context.namespace("logging").get_logger("app.greet")
    template = (config or {}).get("template", "Hello, {name}!")
    get_user = context.namespace("app.users").get_user

    def greet(user_id):
        user = get_user(user_id)
        if user is None:
            logger.warning("Unknown user %s", user_id)
            return None
        return template.format(name=user.name)

    context.namespace("app.greet").greet = greet
