"""
IAM Module Functions
Lets the Cloud Storage service agent publish the events that trigger the function
"""

import pulumi
import pulumi_gcp as gcp
from typing import Dict, Optional

from modules.checks import PUBSUB_PUBLISHER_ROLE, check_publisher_role


def get_storage_service_account(project: str,
                                opts: Optional[pulumi.InvokeOptions] = None) -> Dict[str, any]:
    """
    Look up the project's default Cloud Storage service account

    Args:
        project: GCP project id
        opts: Pulumi invoke options

    Returns:
        Dict with the lookup result and the account email
    """
    account = gcp.storage.get_project_service_account_output(project=project, opts=opts)

    return {
        "account": account,
        "email_address": account.email_address,
        "member": account.email_address.apply(lambda email: f"serviceAccount:{email}")
    }


def grant_pubsub_publisher(name: str,
                           project: str,
                           member: 'pulumi.Input[str]',
                           role: str = PUBSUB_PUBLISHER_ROLE,
                           opts: Optional[pulumi.ResourceOptions] = None) -> Dict[str, any]:
    """
    Grant a member the Pub/Sub publisher role on the project

    Args:
        name: Resource name prefix
        project: GCP project id
        member: IAM member, e.g. serviceAccount:<email>
        role: Role to grant, must be the publisher role
        opts: Pulumi resource options

    Returns:
        Dict with the IAM member resource and outputs
    """
    check_publisher_role(role)

    binding = gcp.projects.IAMMember(
        f"{name}-pubsub-publisher",
        project=project,
        role=role,
        member=member,
        opts=opts
    )

    return {
        "binding": binding,
        "role": binding.role,
        "member": binding.member
    }


def create_iam_resources(name: str,
                         project: str,
                         opts: Optional[pulumi.ResourceOptions] = None,
                         invoke_opts: Optional[pulumi.InvokeOptions] = None) -> Dict[str, any]:
    """
    Resolve the storage service account and grant it the publisher role

    Args:
        name: Resource name prefix
        project: GCP project id
        opts: Pulumi resource options for the binding
        invoke_opts: Pulumi invoke options for the lookup

    Returns:
        Dict with all IAM resources and outputs
    """
    account_result = get_storage_service_account(project, invoke_opts)
    binding_result = grant_pubsub_publisher(name, project, account_result["member"], opts=opts)

    return {
        "storage_account_email": account_result["email_address"],
        "publisher_member": binding_result["member"],
        "publisher_role": binding_result["role"],
        # Keep references to resources for dependencies
        "_binding": binding_result["binding"]
    }
