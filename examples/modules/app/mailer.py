"""Outbox that records messages instead of sending them."""

requires = ["app.store"]


def setup(context, config):
    get_user = context.namespace("app.users").get_user
    outbox = []

    def send(user_id, subject):
        user = get_user(user_id)
        outbox.append({"to": user.email, "subject": subject})
        return len(outbox)

    namespace = context.namespace("app.mailer")
    namespace.outbox = outbox
    namespace.send = send
