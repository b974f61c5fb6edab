"""Built-in email templates.

Both templates are Jinja2 HTML documents. Deployments can replace them with
files of their own through ``LINKAUTH_USER_EMAIL_TEMPLATE_PATH`` and
``LINKAUTH_APP_EMAIL_TEMPLATE_PATH``; the variables below stay the same.

User email variables: app_name, email_handler, magic_link, token.
App email variables: app_id, app_name, redirect_url, secret, email_handler.
"""

USER_EMAIL_SUBJECT = "Here is your magic link for '{app_name}' 🔐"
APP_EMAIL_SUBJECT = "Your app '{app_name}' is ready! 🎉"

USER_EMAIL_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{{ app_name }}</title>
</head>
<body style="font-family: sans-serif; color: #222;">
  <p>Hi {{ email_handler }},</p>
  <p>Use the link below to sign in to <strong>{{ app_name }}</strong>:</p>
  <p><a href="{{ magic_link }}">Sign in to {{ app_name }}</a></p>
  <p>If the link does not work, copy this token into the app:</p>
  <pre>{{ token }}</pre>
  <p>If you did not ask for this email, you can safely ignore it.</p>
</body>
</html>
"""

APP_EMAIL_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{{ app_name }}</title>
</head>
<body style="font-family: sans-serif; color: #222;">
  <p>Hi {{ email_handler }},</p>
  <p>Your app <strong>{{ app_name }}</strong> has been registered.</p>
  <ul>
    <li>App ID: <code>{{ app_id }}</code></li>
    <li>Redirect URL: <code>{{ redirect_url }}</code></li>
    <li>Secret: <code>{{ secret }}</code></li>
  </ul>
  <p>Keep the secret safe. It is shown only once and cannot be recovered.</p>
</body>
</html>
"""
