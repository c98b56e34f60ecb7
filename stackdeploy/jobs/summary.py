"""Operator-facing rendering of deployment reports."""

from __future__ import annotations

from stackdeploy.domain import STAGE_STATUS_SKIPPED, domain_timeline_stages_with_status

from .interfaces import DEPLOYMENT_STATUS_SUCCESS, DeploymentReport


def job_render_deployment_summary(report: DeploymentReport) -> list[str]:
    """Render a deployment report as printable summary lines.

    Args:
        report: Final deployment report.

    Returns:
        list[str]: Summary lines without trailing newlines.
    """

    compose_command = report.compose_command or "docker compose"
    lines = ["", "=" * 40, "Deployment Summary", "=" * 40, ""]

    if report.report_is_failed():
        lines.append(f"Deployment aborted: {report.error_message}")
        lines.append("")
        lines.append(f"Inspect logs with: {compose_command} logs")
        return lines

    if report.running_services:
        lines.append(f"Running services: {' '.join(report.running_services)}")
    if report.failed_services:
        lines.append(f"Failed services: {' '.join(report.failed_services)}")
    if report.unhealthy_services:
        lines.append(f"Unhealthy services: {' '.join(report.unhealthy_services)}")

    troubleshoot_services = list(report.failed_services)
    troubleshoot_services.extend(
        service for service in report.unhealthy_services if service not in troubleshoot_services
    )
    if troubleshoot_services:
        lines.append("")
        lines.append("Troubleshooting commands:")
        lines.extend(f"   {compose_command} logs {service}" for service in troubleshoot_services)

    for warning in report.warnings:
        lines.append(f"Warning: {warning}")

    skipped_stages = list(dict.fromkeys(domain_timeline_stages_with_status(report.timeline, STAGE_STATUS_SKIPPED)))
    if skipped_stages:
        lines.append(f"Skipped steps: {', '.join(skipped_stages)}")

    if report.service_urls:
        lines.append("")
        lines.append("Service URLs:")
        lines.extend(f"   {label + ':':<10} {url}" for label, url in report.service_urls.items())
        lines.append("")
        lines.append("SSL certificates will be automatically generated by Let's Encrypt")
        lines.append("   (This may take a few minutes on first deployment)")

    lines.extend(
        [
            "",
            "Useful commands:",
            f"   Status:    {compose_command} ps",
            f"   Logs:      {compose_command} logs -f [service-name]",
            f"   Stop:      {compose_command} down",
            f"   Restart:   {compose_command} restart [service-name]",
            f"   Shell:     {compose_command} exec [service-name] bash",
            "",
        ]
    )

    if report.status == DEPLOYMENT_STATUS_SUCCESS:
        lines.append("Deployment completed successfully!")
        app_url = report.service_urls.get("App")
        lines.extend(["", "Next steps:", "1. Wait 2-5 minutes for SSL certificates to be generated"])
        lines.append(f"2. Test your application at {app_url}" if app_url else "2. Test your application")
        lines.append("3. Monitor logs if you encounter any issues")
    else:
        lines.append("Deployment completed with some issues")
        lines.append("Please check the failed services and their logs before proceeding.")

    lines.append("")
    lines.append(f"Monitor the deployment with: {compose_command} logs -f")
    return lines
