"""
Admin Web Hosting Stack
Defines infrastructure for hosting a single-page web application and delivering it continuously

AWS Services Used:
- Amazon S3: Static website hosting for the built application
  Documentation: https://docs.aws.amazon.com/AmazonS3/latest/userguide/WebsiteHosting.html
- Amazon CloudFront: Edge caching in front of the bucket
  Documentation: https://docs.aws.amazon.com/AmazonCloudFront/latest/DeveloperGuide/Introduction.html
- AWS CodePipeline: Source -> Build -> Deploy orchestration
  Documentation: https://docs.aws.amazon.com/codepipeline/latest/userguide/welcome.html
- AWS CodeBuild: Installs dependencies, builds the app, invalidates the CDN cache
  Documentation: https://docs.aws.amazon.com/codebuild/latest/userguide/welcome.html
- AWS Secrets Manager: GitHub OAuth token storage
  Documentation: https://docs.aws.amazon.com/secretsmanager/latest/userguide/intro.html

Architecture Overview:
1. S3 Bucket: website index/error documents, S3-managed encryption
2. CloudFront Distribution: reads the bucket through an Origin Access Identity,
   rewrites 404/403 to /index.html so client-side routes resolve
3. CodePipeline: GitHub source -> CodeBuild -> S3 deploy
4. Outputs: CloudFront domain and S3 website URL
"""

from typing import Dict, Optional

from aws_cdk import (
    Stack,
    Duration,
    RemovalPolicy,
    CfnOutput,
    SecretValue,
    aws_s3 as s3,
    aws_iam as iam,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_codebuild as codebuild,
    aws_codepipeline as codepipeline,
    aws_codepipeline_actions as codepipeline_actions,
)
from constructs import Construct

from admin_infra.config import StackConfig, build_image_for
from admin_infra.constants import (
    ACTION_BUILD,
    ACTION_DEPLOY,
    ACTION_SOURCE,
    BUILD_COMMANDS,
    ERROR_RESPONSES,
    ERROR_RESPONSE_TTL_SECONDS,
    INSTALL_COMMANDS,
    INVALIDATION_PATHS,
    OUTPUT_BUCKET_URL,
    OUTPUT_CLOUDFRONT_URL,
    ROOT_PAGE_PATH,
    STAGE_BUILD,
    STAGE_DEPLOY,
    STAGE_SOURCE,
)
from admin_infra.settings import to_build_environment


class AdminInfraStack(Stack):
    """
    Hosting + delivery stack for the admin single-page application.

    One stack is deployed per environment (dev, prod); everything that differs
    between environments comes from the StackConfig.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: StackConfig,
        settings: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> None:
        """
        Initialize the admin web hosting stack.

        Args:
            config: validated before any resource is declared
            settings: build environment variables, usually from load_settings()
        """
        config.validate()
        super().__init__(scope, construct_id, **kwargs)
        self.config = config

        self.web_bucket = self._create_web_bucket(config)
        self.distribution = self._create_cloudfront_distribution(self.web_bucket)

        self.source_output, source_action = self._create_source_action(config)
        self.build_output, self.build_project = self._create_build_project(
            config, self.distribution, settings or {}
        )
        build_action = self._create_build_action(self.build_project, self.source_output, self.build_output)
        deploy_action = self._create_deploy_action(self.build_output, self.web_bucket)

        self.pipeline = self._create_pipeline(
            config,
            source_action,
            build_action,
            deploy_action,
            self.web_bucket,
            self.distribution,
        )

        self._out_cloudfront_url(self.distribution)
        self._out_s3_bucket_url(self.web_bucket)

    # ========================================================================
    # S3 BUCKET: Static Website Hosting
    # ========================================================================
    def _create_web_bucket(self, config: StackConfig) -> s3.Bucket:
        # Bucket documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_s3/Bucket.html
        return s3.Bucket(
            self, config.bucket_name,
            website_index_document=config.index_file,
            website_error_document=config.error_file,
            public_read_access=config.public_access,
            # Website bucket is torn down with the stack
            removal_policy=RemovalPolicy.DESTROY,
            # Only ACLs are blocked, a public-read bucket policy is still allowed
            # BlockPublicAccess documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_s3/BlockPublicAccess.html
            block_public_access=s3.BlockPublicAccess.BLOCK_ACLS,
            access_control=s3.BucketAccessControl.BUCKET_OWNER_FULL_CONTROL,
            encryption=s3.BucketEncryption.S3_MANAGED,
        )

    # ========================================================================
    # CLOUDFRONT DISTRIBUTION: Edge Caching
    # ========================================================================
    def _create_cloudfront_distribution(self, bucket: s3.Bucket) -> cloudfront.Distribution:
        # Origin Access Identity lets only this distribution read the bucket objects
        # OAI guide: https://docs.aws.amazon.com/AmazonCloudFront/latest/DeveloperGuide/private-content-restricting-access-to-s3.html
        oai = cloudfront.OriginAccessIdentity(self, "OAI")
        bucket.add_to_resource_policy(
            iam.PolicyStatement(
                actions=["s3:GetObject"],
                resources=[bucket.arn_for_objects("*")],
                principals=[
                    iam.CanonicalUserPrincipal(
                        oai.cloud_front_origin_access_identity_s3_canonical_user_id
                    )
                ],
            )
        )

        # S3BucketOrigin documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_cloudfront_origins/S3BucketOrigin.html
        s3_origin = origins.S3BucketOrigin.with_origin_access_identity(
            bucket,
            origin_access_identity=oai,
        )

        # Client-side routes are not objects in the bucket, S3 answers them with 403/404.
        # Serving the root document instead lets the SPA router take over.
        # ErrorResponse documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_cloudfront/ErrorResponse.html
        error_responses = [
            cloudfront.ErrorResponse(
                http_status=mapping["http_status"],
                response_http_status=mapping["response_http_status"],
                response_page_path=ROOT_PAGE_PATH,
                ttl=Duration.seconds(ERROR_RESPONSE_TTL_SECONDS),
            )
            for mapping in ERROR_RESPONSES
        ]

        # Distribution documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_cloudfront/Distribution.html
        return cloudfront.Distribution(
            self, "react-deployment-distribution",
            default_behavior=cloudfront.BehaviorOptions(
                origin=s3_origin,
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
            ),
            default_root_object="index.html",
            error_responses=error_responses,
            # North America + Europe edge locations only
            price_class=cloudfront.PriceClass.PRICE_CLASS_100,
        )

    # ========================================================================
    # SOURCE STAGE: GitHub Repository
    # ========================================================================
    def _create_source_action(self, config: StackConfig):
        source_output = codepipeline.Artifact()
        # GitHubSourceAction documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_codepipeline_actions/GitHubSourceAction.html
        source_action = codepipeline_actions.GitHubSourceAction(
            action_name=ACTION_SOURCE,
            owner=config.github_repo_owner,
            repo=config.github_repo_name,
            branch=config.branch,
            # Token is resolved by CloudFormation at deploy time, never synthesized
            oauth_token=SecretValue.secrets_manager(config.github_access_token),
            output=source_output,
        )
        return source_output, source_action

    # ========================================================================
    # BUILD STAGE: CodeBuild Project
    # ========================================================================
    def _create_build_project(
        self,
        config: StackConfig,
        distribution: cloudfront.Distribution,
        settings: Dict[str, str],
    ):
        build_output = codepipeline.Artifact()

        # Build spec reference: https://docs.aws.amazon.com/codebuild/latest/userguide/build-spec-ref.html
        build_spec = codebuild.BuildSpec.from_object({
            "version": "0.2",
            "phases": {
                "install": {
                    "commands": INSTALL_COMMANDS,
                },
                "build": {
                    "commands": BUILD_COMMANDS,
                },
                "post_build": {
                    "commands": [
                        'echo "creating cloudfront invalidation"',
                        f"aws cloudfront create-invalidation --distribution-id {distribution.distribution_id} "
                        f"--paths '{INVALIDATION_PATHS}'",
                    ],
                },
            },
            "artifacts": {
                "base-directory": config.output_directory,
                "files": ["**/*"],
            },
        })

        # PipelineProject documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_codebuild/PipelineProject.html
        build_project = codebuild.PipelineProject(
            self, "react-code-build-project",
            build_spec=build_spec,
            environment=codebuild.BuildEnvironment(
                build_image=build_image_for(config.build_image),
            ),
            environment_variables=to_build_environment(settings),
        )

        build_project.add_to_role_policy(
            iam.PolicyStatement(
                actions=["codebuild:StartBuild", "codebuild:BatchGetBuilds"],
                resources=[build_project.project_arn],
            )
        )
        # post_build runs create-invalidation against this distribution
        distribution.grant_create_invalidation(build_project)

        return build_output, build_project

    def _create_build_action(
        self,
        build_project: codebuild.PipelineProject,
        source_output: codepipeline.Artifact,
        build_output: codepipeline.Artifact,
    ) -> codepipeline_actions.CodeBuildAction:
        return codepipeline_actions.CodeBuildAction(
            action_name=ACTION_BUILD,
            project=build_project,
            input=source_output,
            outputs=[build_output],
        )

    # ========================================================================
    # DEPLOY STAGE: Publish Build Output to S3
    # ========================================================================
    def _create_deploy_action(
        self,
        build_output: codepipeline.Artifact,
        bucket: s3.Bucket,
    ) -> codepipeline_actions.S3DeployAction:
        # S3DeployAction documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_codepipeline_actions/S3DeployAction.html
        return codepipeline_actions.S3DeployAction(
            action_name=ACTION_DEPLOY,
            input=build_output,
            bucket=bucket,
        )

    # ========================================================================
    # PIPELINE DEFINITION
    # ========================================================================
    def _create_pipeline(
        self,
        config: StackConfig,
        source_action: codepipeline_actions.GitHubSourceAction,
        build_action: codepipeline_actions.CodeBuildAction,
        deploy_action: codepipeline_actions.S3DeployAction,
        bucket: s3.Bucket,
        distribution: cloudfront.Distribution,
    ) -> codepipeline.Pipeline:
        artifact_bucket = None
        if config.pipeline_bucket:
            # Reuse an artifact bucket that already exists in the account
            # from_bucket_name documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_s3/Bucket.html#aws_cdk.aws_s3.Bucket.from_bucket_name
            artifact_bucket = s3.Bucket.from_bucket_name(
                self, "pipeline-existing-artifact-bucket", config.pipeline_bucket
            )

        stages = [
            codepipeline.StageProps(stage_name=STAGE_SOURCE, actions=[source_action]),
            codepipeline.StageProps(stage_name=STAGE_BUILD, actions=[build_action]),
            codepipeline.StageProps(stage_name=STAGE_DEPLOY, actions=[deploy_action]),
        ]

        # Pipeline documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk.aws_codepipeline/Pipeline.html
        pipeline = codepipeline.Pipeline(
            self, "admincodepipeline",
            pipeline_name=config.pipeline_name,
            artifact_bucket=artifact_bucket,
            # Single-account pipeline, no KMS key for cross-account artifacts
            cross_account_keys=False,
            stages=stages,
        )
        pipeline.node.add_dependency(bucket, distribution)
        return pipeline

    # ========================================================================
    # CLOUDFORMATION OUTPUTS
    # ========================================================================
    def _out_cloudfront_url(self, distribution: cloudfront.Distribution) -> None:
        CfnOutput(
            self, OUTPUT_CLOUDFRONT_URL,
            value=distribution.distribution_domain_name,
            description="cloudfront website url",
        )

    def _out_s3_bucket_url(self, bucket: s3.Bucket) -> None:
        CfnOutput(
            self, OUTPUT_BUCKET_URL,
            value=bucket.bucket_website_url,
            description="s3 bucket url",
        )
