"""
Apple/Tomato Image Classification Pipeline
Buckets, content-addressed function source and a storage-triggered classifier
"""
import pulumi
import pulumi_gcp as gcp
from config import get_config
from modules.checks import check_unique_names
from modules.storage import BUCKET_ROLES, bucket_name, create_pipeline_buckets
from modules.artifact import create_artifact_object
from modules.iam import create_iam_resources
from modules.function import create_classify_function, verify_build_source

# Configuration
config = get_config()
labels = config.common_labels

check_unique_names(bucket_name(role, config.project) for role in BUCKET_ROLES)

# 1. Provider bound to the project and region
provider = gcp.Provider("google",
    project=config.project,
    region=config.region)
resource_opts = pulumi.ResourceOptions(provider=provider)

# 2. Storage buckets
buckets = create_pipeline_buckets(config.project, config.region,
    labels=labels,
    force_destroy=config.force_destroy_buckets,
    opts=resource_opts)

# 3-4. Packaged function source, uploaded under its content hash
artifact = create_artifact_object(config.function_name,
    bucket=buckets["asset"]["bucket_name"],
    source_dir=config.function_source_dir,
    opts=resource_opts)

# 5-6. Storage service agent may publish the trigger events
iam = create_iam_resources("storage-account", config.project,
    opts=resource_opts,
    invoke_opts=pulumi.InvokeOptions(provider=provider))

# 7. Classification function
function = create_classify_function(config.function_name, config.region,
    source_bucket=buckets["src"]["bucket_name"],
    artifact_bucket=buckets["asset"]["bucket_name"],
    artifact_object=artifact["object_name"],
    environment_variables={
        "DST_APPLE_BUCKET": buckets["dst-apple"]["bucket_name"],
        "DST_TOMATO_BUCKET": buckets["dst-tomato"]["bucket_name"],
        "PROJECT_ID": config.project,
        "ENDPOINT_ID": config.endpoint_id,
        "REGION": config.region,
    },
    runtime=config.function_runtime,
    entry_point=config.function_entry_point,
    min_instance_count=config.min_instance_count,
    max_instance_count=config.max_instance_count,
    labels=labels,
    opts=pulumi.ResourceOptions(provider=provider, depends_on=[iam["_binding"]]))

if not config.endpoint_id:
    pulumi.log.warn("endpoint_id is not set; the function cannot query the prediction endpoint")

# Exports
pulumi.export("bucket_names", {role: result["bucket_name"] for role, result in buckets.items()})
pulumi.export("artifact_object", artifact["object_name"])
pulumi.export("artifact_hash", artifact["asset_hash"])
pulumi.export("storage_account_email", iam["storage_account_email"])
pulumi.export("function_name", function["function_name"])
pulumi.export("function_url", function["function_url"])
pulumi.export("function_source", verify_build_source(function["function"],
    buckets["asset"]["bucket_name"],
    artifact["object_name"]))
