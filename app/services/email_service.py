"""
Amazon SES Email Service
"""
import boto3
import logging
from typing import List, Optional
from botocore.exceptions import ClientError, BotoCoreError
from jinja2 import Environment, BaseLoader, TemplateNotFound
from app.core.config import settings

logger = logging.getLogger(__name__)


_LAYOUT_HEAD = '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ subject }}</title>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: linear-gradient(135deg, #6366f1 0%, #4f46e5 100%); color: white; padding: 20px; text-align: center; border-radius: 10px 10px 0 0; }
        .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px; }
        .button { display: inline-block; background: #4f46e5; color: white; padding: 12px 30px; text-decoration: none; border-radius: 5px; margin: 20px 0; font-weight: bold; }
        .footer { text-align: center; margin-top: 30px; font-size: 14px; color: #666; }
    </style>
</head>
<body>
    <div class="header"><h1>{{ project_name }}</h1></div>
    <div class="content">
'''

_LAYOUT_FOOT = '''
        <p>Best regards,<br>The {{ project_name }} Team</p>
    </div>
    <div class="footer">
        <p>This email was sent to {{ user_email }}</p>
    </div>
</body>
</html>
'''


class TemplateLoader(BaseLoader):
    """Simple template loader for email templates"""

    def __init__(self):
        self.templates = {
            'email_verification': _LAYOUT_HEAD + '''
        <h2>Verify Your Email Address</h2>
        <p>Hello {{ user_name }},</p>
        <p>Thanks for joining {{ project_name }}. Please confirm your email address to unlock your founder portal:</p>
        <p style="text-align: center;"><a href="{{ verification_url }}" class="button">Verify Email Address</a></p>
        <p style="word-break: break-all;">{{ verification_url }}</p>
        <p>This link expires in <strong>24 hours</strong>.</p>
''' + _LAYOUT_FOOT,
            'password_reset': _LAYOUT_HEAD + '''
        <h2>Reset Your Password</h2>
        <p>Hello {{ user_name }},</p>
        <p>We received a request to reset your password. Click below to choose a new one:</p>
        <p style="text-align: center;"><a href="{{ reset_url }}" class="button">Reset Password</a></p>
        <p style="word-break: break-all;">{{ reset_url }}</p>
        <p>This link expires in <strong>1 hour</strong>. If you didn't request it, you can ignore this email.</p>
''' + _LAYOUT_FOOT,
            'welcome': _LAYOUT_HEAD + '''
        <h2>Welcome aboard!</h2>
        <p>Hello {{ user_name }},</p>
        <p>Your email is verified. Head to your portal to work through your startup checklist and browse investors.</p>
        <p style="text-align: center;"><a href="{{ portal_url }}" class="button">Open Portal</a></p>
''' + _LAYOUT_FOOT,
        }

    def get_source(self, environment, template):
        if template not in self.templates:
            raise TemplateNotFound(template)
        source = self.templates[template]
        return source, None, lambda: True


class EmailService:
    """Amazon SES email service for sending transactional emails"""

    def __init__(self):
        """Initialize SES client"""
        self.ses_client = None
        self.env = Environment(loader=TemplateLoader(), autoescape=True)

        # Only initialize if we have AWS credentials
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            try:
                self.ses_client = boto3.client(
                    'ses',
                    region_name=settings.SES_REGION,
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY
                )
                logger.info(f"SES client initialized for region: {settings.SES_REGION}")
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Failed to initialize SES client: {str(e)}")
                self.ses_client = None
        else:
            logger.warning("AWS credentials not configured. Email service disabled.")

    def _send_email(
        self,
        to_emails: List[str],
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> bool:
        """
        Send an email using Amazon SES

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        if not self.ses_client:
            logger.error("SES client not initialized. Cannot send email.")
            return False

        if not settings.SES_SENDER_EMAIL:
            logger.error("SES_SENDER_EMAIL not configured. Cannot send email.")
            return False

        message = {
            'Subject': {'Data': subject, 'Charset': 'UTF-8'},
            'Body': {'Html': {'Data': html_body, 'Charset': 'UTF-8'}}
        }
        if text_body:
            message['Body']['Text'] = {'Data': text_body, 'Charset': 'UTF-8'}

        try:
            response = self.ses_client.send_email(
                Source=settings.SES_SENDER_EMAIL,
                Destination={'ToAddresses': to_emails},
                Message=message,
            )
            logger.info(f"Email sent successfully. MessageId: {response['MessageId']}")
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SES ClientError [{error_code}]: {error_message}")
            return False
        except BotoCoreError as e:
            logger.error(f"AWS SES BotoCoreError: {str(e)}")
            return False

    def _render(self, template_name: str, subject: str, user_email: str, **context) -> str:
        template = self.env.get_template(template_name)
        return template.render(
            subject=subject,
            user_email=user_email,
            project_name=settings.PROJECT_NAME,
            **context
        )

    def send_verification_email(self, user_email: str, user_name: str, verification_token: str) -> bool:
        """Send email verification email"""
        subject = f"Verify Your Email - {settings.PROJECT_NAME}"
        html_content = self._render(
            'email_verification',
            subject,
            user_email,
            user_name=user_name,
            verification_url=f"{settings.FRONTEND_URL}/verify-email?token={verification_token}",
        )
        return self._send_email([user_email], subject, html_content)

    def send_password_reset_email(self, user_email: str, user_name: str, reset_token: str) -> bool:
        """Send password reset email"""
        subject = f"Reset Your Password - {settings.PROJECT_NAME}"
        html_content = self._render(
            'password_reset',
            subject,
            user_email,
            user_name=user_name,
            reset_url=f"{settings.FRONTEND_URL}/reset-password?token={reset_token}",
        )
        return self._send_email([user_email], subject, html_content)

    def send_welcome_email(self, user_email: str, user_name: str) -> bool:
        """Send welcome email once the address is verified"""
        subject = f"Welcome to {settings.PROJECT_NAME}"
        html_content = self._render(
            'welcome',
            subject,
            user_email,
            user_name=user_name,
            portal_url=f"{settings.FRONTEND_URL}/portal",
        )
        return self._send_email([user_email], subject, html_content)


# Global email service instance
email_service = EmailService()
