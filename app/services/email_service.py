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


class TemplateLoader(BaseLoader):
    """In-memory loader for email templates"""

    def __init__(self):
        self.templates = {
            'organization_welcome': '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Welcome to {{ project_name }}</title>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #2D1A24; max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: {{ primary_color }}; color: white; padding: 20px; text-align: center; border-radius: 10px 10px 0 0; }
        .content { background: #FDF8F5; padding: 30px; border-radius: 0 0 10px 10px; }
        .code { font-size: 28px; font-weight: bold; letter-spacing: 3px; background: white; padding: 15px; text-align: center; border-radius: 5px; }
        .footer { text-align: center; margin-top: 30px; font-size: 14px; color: #666; }
    </style>
</head>
<body>
    <div class="header">
        <h1>{{ org_name }}</h1>
        <p>Your organization is ready</p>
    </div>
    <div class="content">
        <p>Hello {{ admin_name }},</p>
        <p>{{ org_name }} has been created. Members join from the mobile app by entering this organization code:</p>
        <p class="code">{{ org_code }}</p>
        <p>Sign in to the dashboard to add members, check visitors in and post announcements:</p>
        <p><a href="{{ dashboard_url }}">{{ dashboard_url }}</a></p>
        <p>Your donation kiosk, once enabled in settings, is available at:</p>
        <p><a href="{{ kiosk_url }}">{{ kiosk_url }}</a></p>
        <p>The {{ project_name }} Team</p>
    </div>
    <div class="footer">
        <p>This email was sent to {{ admin_email }}</p>
    </div>
</body>
</html>
            ''',
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

        # Only initialize if email is enabled and we have AWS credentials
        if settings.EMAIL_ENABLED and settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            try:
                self.ses_client = boto3.client(
                    'ses',
                    region_name=settings.SES_REGION,
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY
                )
                logger.info(f"SES client initialized for region: {settings.SES_REGION}")
            except Exception as e:
                logger.error(f"Failed to initialize SES client: {str(e)}")
                self.ses_client = None
        else:
            logger.warning("Email delivery disabled.")

    def _send_email(
        self,
        to_emails: List[str],
        subject: str,
        html_body: str,
        reply_to: Optional[str] = None
    ) -> bool:
        """
        Send an email using Amazon SES

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        if not self.ses_client:
            logger.info(f"Email disabled; skipped '{subject}' to {to_emails}")
            return False

        if not settings.SES_SENDER_EMAIL:
            logger.error("SES_SENDER_EMAIL not configured. Cannot send email.")
            return False

        try:
            response = self.ses_client.send_email(
                Source=settings.SES_SENDER_EMAIL,
                Destination={'ToAddresses': to_emails},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': {'Html': {'Data': html_body, 'Charset': 'UTF-8'}}
                },
                ReplyToAddresses=[reply_to] if reply_to else []
            )

            message_id = response['MessageId']
            logger.info(f"Email sent successfully. MessageId: {message_id}")
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SES ClientError [{error_code}]: {error_message}")
            return False
        except BotoCoreError as e:
            logger.error(f"AWS SES BotoCoreError: {str(e)}")
            return False

    def render_organization_welcome(
        self,
        admin_name: str,
        admin_email: str,
        org_name: str,
        org_code: str,
        primary_color: str,
    ) -> str:
        template = self.env.get_template('organization_welcome')
        return template.render(
            admin_name=admin_name,
            admin_email=admin_email,
            org_name=org_name,
            org_code=org_code,
            primary_color=primary_color,
            dashboard_url=f"{settings.FRONTEND_URL}/dashboard",
            kiosk_url=f"{settings.KIOSK_BASE_URL}/{org_code}/donate",
            project_name=settings.PROJECT_NAME,
        )

    def send_organization_welcome_email(
        self,
        admin_name: str,
        admin_email: str,
        org_name: str,
        org_code: str,
        primary_color: str,
    ) -> bool:
        """Tell a newly signed-up admin their organization code"""
        html_content = self.render_organization_welcome(
            admin_name, admin_email, org_name, org_code, primary_color
        )
        return self._send_email(
            to_emails=[admin_email],
            subject=f"{org_name} is ready - your organization code is {org_code}",
            html_body=html_content,
        )


email_service = EmailService()
