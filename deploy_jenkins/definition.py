"""
Job definition rendering.

Renders the CI server's job definition document (a pipeline job with two
string parameters and a declarative pipeline body) from a Jinja2 template.
Output depends only on the JobParameters, so identical input always renders
byte-identical documents.
"""

import logging

from jinja2 import Environment, PackageLoader, StrictUndefined

from deploy_common.models import NOTIFY_EMAILS_PARAM, REPO_URL_PARAM, JobParameters

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "pipeline_job.xml.j2"


class JobDefinitionBuilder:
    """
    Renders job definition documents from the package's templates.

    Analysis-server URL, credentials and storage coordinates are bound by the
    CI server's own configuration; the template only references them.
    """

    def __init__(
        self,
        template_name: str = DEFAULT_TEMPLATE,
        days_to_keep: int = 7,
        num_to_keep: int = 5,
    ):
        """
        Args:
            template_name: Template file within deploy_jenkins/templates
            days_to_keep: Build retention in days
            num_to_keep: Maximum number of retained builds
        """
        self.template_name = template_name
        self.days_to_keep = days_to_keep
        self.num_to_keep = num_to_keep

        # autoescape keeps submitted values well-formed inside the XML document
        self.env = Environment(
            loader=PackageLoader("deploy_jenkins", "templates"),
            autoescape=True,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, params: JobParameters) -> str:
        """
        Render the job definition for a repository.

        Args:
            params: Repository URL and notification addresses, used as the
                defaults of the job's two parameters

        Returns:
            Job definition document
        """
        template = self.env.get_template(self.template_name)
        document = template.render(
            repo_url=params.repo_url,
            recipients=params.recipients,
            repo_url_param=REPO_URL_PARAM,
            notify_param=NOTIFY_EMAILS_PARAM,
            days_to_keep=self.days_to_keep,
            num_to_keep=self.num_to_keep,
        )
        logger.debug(f"Rendered job definition for {params.job_name}")
        return document
