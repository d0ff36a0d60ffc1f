"""
Function Module Functions
Creates the storage-triggered classification function
"""

import pulumi
import pulumi_gcp as gcp
from typing import Dict, Optional

from modules.checks import check_build_source


STORAGE_FINALIZED_EVENT = "google.cloud.storage.object.v1.finalized"


def create_classify_function(name: str,
                             region: str,
                             source_bucket: 'pulumi.Input[str]',
                             artifact_bucket: 'pulumi.Input[str]',
                             artifact_object: 'pulumi.Input[str]',
                             environment_variables: Dict[str, 'pulumi.Input[str]'],
                             runtime: str = "python312",
                             entry_point: str = "classify",
                             min_instance_count: int = 0,
                             max_instance_count: int = 1,
                             labels: Dict[str, str] = None,
                             opts: Optional[pulumi.ResourceOptions] = None) -> Dict[str, any]:
    """
    Create a 2nd gen Cloud Function triggered by object finalization

    Args:
        name: Function name
        region: Function location
        source_bucket: Bucket whose finalized objects trigger the function
        artifact_bucket: Bucket holding the packaged source
        artifact_object: Object name of the packaged source
        environment_variables: Runtime environment of the function
        runtime: Cloud Functions runtime id
        entry_point: Name of the registered handler
        min_instance_count: Instances kept warm, 0 scales to zero
        max_instance_count: Upper bound on live instances
        labels: Additional labels
        opts: Pulumi resource options

    Returns:
        Dict with function resource and outputs
    """
    labels = labels or {}

    function = gcp.cloudfunctionsv2.Function(
        name,
        name=name,
        location=region,
        event_trigger=gcp.cloudfunctionsv2.FunctionEventTriggerArgs(
            event_type=STORAGE_FINALIZED_EVENT,
            event_filters=[
                gcp.cloudfunctionsv2.FunctionEventTriggerEventFilterArgs(
                    attribute="bucket",
                    value=source_bucket
                )
            ]
        ),
        build_config=gcp.cloudfunctionsv2.FunctionBuildConfigArgs(
            entry_point=entry_point,
            runtime=runtime,
            source=gcp.cloudfunctionsv2.FunctionBuildConfigSourceArgs(
                storage_source=gcp.cloudfunctionsv2.FunctionBuildConfigSourceStorageSourceArgs(
                    bucket=artifact_bucket,
                    object=artifact_object
                )
            )
        ),
        service_config=gcp.cloudfunctionsv2.FunctionServiceConfigArgs(
            environment_variables=environment_variables,
            min_instance_count=min_instance_count,
            max_instance_count=max_instance_count
        ),
        labels={
            **labels,
            "role": "classify",
        },
        opts=opts
    )

    return {
        "function": function,
        "function_name": function.name,
        "function_url": function.url
    }


def storage_source_of(build_config) -> Dict[str, str]:
    """Bucket and object a resolved build config reads its source from"""
    source = build_config.source if build_config else None
    storage_source = source.storage_source if source else None
    if storage_source is None:
        return {}
    return {"bucket": storage_source.bucket, "object": storage_source.object}


def verify_build_source(function: gcp.cloudfunctionsv2.Function,
                        artifact_bucket: 'pulumi.Input[str]',
                        artifact_object: 'pulumi.Input[str]') -> pulumi.Output:
    """
    Check, once values are known, that the function builds from the uploaded artifact

    Returns:
        Output resolving to the checked gs:// url
    """
    def check(args):
        storage_source, bucket, object_name = args
        check_build_source(storage_source, bucket, object_name)
        return f"gs://{bucket}/{object_name}"

    # Read the typed build config before Output.all flattens it into plain dicts
    storage_source = function.build_config.apply(storage_source_of)
    return pulumi.Output.all(storage_source, artifact_bucket, artifact_object).apply(check)
