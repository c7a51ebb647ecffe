"""
Create the DynamoDB table that holds garden slots.

Run once per environment:
    python scripts/create_dynamodb_table.py

Key schema: garden_id (HASH) + slot (RANGE). Each item stores one slot's JSON
text in `payload`, as written by garden.storage.DynamoSlotBackend.

Requirements:
    - AWS credentials configured (via environment variables, IAM role, or ~/.aws/credentials)
    - Permission to create DynamoDB tables
"""

import boto3
import os
from botocore.exceptions import ClientError

# Configuration
TABLE_NAME = os.getenv('GARDEN_DYNAMO_TABLE', 'seed_studio_slots')
REGION = os.getenv('AWS_REGION', os.getenv('AWS_S3_REGION_NAME', 'us-east-1'))


def create_table(table_name=TABLE_NAME, region=REGION, client=None):
    """Create the slots table. Returns True if it exists afterwards."""
    dynamodb = client or boto3.client('dynamodb', region_name=region)

    try:
        response = dynamodb.create_table(
            TableName=table_name,
            KeySchema=[
                {'AttributeName': 'garden_id', 'KeyType': 'HASH'},
                {'AttributeName': 'slot', 'KeyType': 'RANGE'},
            ],
            AttributeDefinitions=[
                {'AttributeName': 'garden_id', 'AttributeType': 'S'},
                {'AttributeName': 'slot', 'AttributeType': 'S'},
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        print(f"Creating table {table_name}...")
        print(f"Table ARN: {response['TableDescription']['TableArn']}")
        print("Waiting for table to be active...")

        waiter = dynamodb.get_waiter('table_exists')
        waiter.wait(TableName=table_name)

        print(f"Table {table_name} created.")
        return True

    except ClientError as e:
        if e.response['Error']['Code'] == 'ResourceInUseException':
            print(f"Table {table_name} already exists.")
            return True
        print(f"Error creating table: {e}")
        return False


if __name__ == '__main__':
    create_table()
