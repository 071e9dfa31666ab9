"""Outbound integrations: the Postmark mailer for preflight report emails."""

from WebGL_Preflight.services.mailer import PostmarkMailer

__all__ = ["PostmarkMailer"]
