"""
Amazon SNS SMS Service
Delivers phone one-time codes
"""
import boto3
import logging
from botocore.exceptions import ClientError, BotoCoreError
from app.core.config import settings

logger = logging.getLogger(__name__)


class SmsService:
    """Sends transactional SMS through Amazon SNS"""

    def __init__(self):
        self.sns_client = None

        if settings.SMS_ENABLED and settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            try:
                self.sns_client = boto3.client(
                    'sns',
                    region_name=settings.AWS_REGION,
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY
                )
                logger.info(f"SNS client initialized for region: {settings.AWS_REGION}")
            except Exception as e:
                logger.error(f"Failed to initialize SNS client: {str(e)}")
                self.sns_client = None
        else:
            logger.warning("SMS delivery disabled. One-time codes will only be logged.")

    def send_otp(self, phone: str, code: str) -> bool:
        """
        Send a one-time code by SMS

        Returns:
            bool: True if the message was handed to SNS
        """
        if not self.sns_client:
            logger.debug(f"SMS disabled; one-time code for {phone}: {code}")
            return False

        try:
            response = self.sns_client.publish(
                PhoneNumber=phone,
                Message=f"Your {settings.PROJECT_NAME} verification code is {code}",
                MessageAttributes={
                    'AWS.SNS.SMS.SMSType': {'DataType': 'String', 'StringValue': 'Transactional'}
                },
            )
            logger.info(f"OTP SMS sent. MessageId: {response['MessageId']}")
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SNS ClientError [{error_code}]: {error_message}")
            return False
        except BotoCoreError as e:
            logger.error(f"AWS SNS BotoCoreError: {str(e)}")
            return False


sms_service = SmsService()
