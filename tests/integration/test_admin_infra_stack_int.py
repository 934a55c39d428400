"""
Integration Tests for the Admin Web Hosting Stack
Makes HTTP requests through CloudFront against the deployed dev environment

Test Level: Integration Testing
- Requires the stack to be deployed and the pipeline to have published a build
- Skipped when the stack outputs cannot be read

Complete Workflow Tests:
- HTTP -> HTTPS redirect at the edge
- Root document served over HTTPS
- Client-side routes rewritten to the root document
"""

import os

import boto3
import pytest
import requests

from admin_infra.config import DEV_CONFIG

STACK_NAME = DEV_CONFIG.stack_name
TIMEOUT_SECONDS = 10
REGION = os.getenv('AWS_REGION', os.getenv('CDK_DEFAULT_REGION', 'us-east-1'))


@pytest.fixture(scope='module')
def cloudfront_domain():
    """Get the CloudFront domain from CloudFormation stack outputs"""
    try:
        cloudformation = boto3.client('cloudformation', region_name=REGION)
        response = cloudformation.describe_stacks(StackName=STACK_NAME)
        for output in response['Stacks'][0].get('Outputs', []):
            if output['Description'] == 'cloudfront website url':
                return output['OutputValue']
        pytest.skip("cloudfront website url output not found in stack")
    except Exception as e:
        pytest.skip(f"Stack not found or not deployed: {e}")


def test_http_redirects_to_https(cloudfront_domain):
    response = requests.get(f"http://{cloudfront_domain}/", allow_redirects=False, timeout=TIMEOUT_SECONDS)

    assert response.status_code in (301, 302, 307, 308)
    assert response.headers['Location'].startswith('https://')


def test_root_document_served(cloudfront_domain):
    response = requests.get(f"https://{cloudfront_domain}/", timeout=TIMEOUT_SECONDS)

    if response.status_code != 200:
        pytest.skip(f"No build published yet (status {response.status_code})")
    assert 'text/html' in response.headers.get('Content-Type', '')


def test_client_side_route_serves_root_document(cloudfront_domain):
    """
    A deep link that is not an object in the bucket must return the SPA shell.

    The status code follows the error mapping (404 stays 404, 403 becomes 500);
    the body is always /index.html.
    """
    root = requests.get(f"https://{cloudfront_domain}/", timeout=TIMEOUT_SECONDS)
    if root.status_code != 200:
        pytest.skip(f"No build published yet (status {root.status_code})")

    deep_link = requests.get(f"https://{cloudfront_domain}/customers/42/edit", timeout=TIMEOUT_SECONDS)

    assert deep_link.status_code in (404, 500)
    assert deep_link.text == root.text
