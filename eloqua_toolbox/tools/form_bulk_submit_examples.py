# eloqua_toolbox/tools/form_bulk_submit_examples.py - Static examples and usage guide

from __future__ import annotations

from typing import Any

CSV_EXAMPLES: dict[str, str] = {
    "contact_form": (
        "firstName,lastName,emailAddress,company,phone\n"
        "John,Doe,john.doe@example.com,ACME Corp,(555) 123-4567\n"
        "Jane,Smith,jane.smith@company.com,Tech Solutions,(555) 987-6543\n"
        "Mike,Johnson,mike.j@business.org,Global Inc,(555) 456-7890"
    ),
    "lead_gen_form": (
        "firstName,lastName,emailAddress,company,industry,jobTitle,website\n"
        "Alice,Brown,alice.brown@startup.com,Innovation Labs,Technology,CTO,https://innovationlabs.com\n"
        "Bob,Davis,bob.davis@manufacturing.com,Steel Works,Manufacturing,Operations Manager,https://steelworks.com\n"
        "Carol,Wilson,carol.wilson@healthcare.org,MedCare Plus,Healthcare,Director,https://medcareplus.org"
    ),
    "webinar_registration": (
        "firstName,lastName,emailAddress,company,jobTitle,utm_source,utm_campaign,utm_medium\n"
        "Isabella,Rodriguez,isabella.r@company.com,DataCorp,Data Scientist,linkedin,q1-webinar,social\n"
        "Jack,Lee,jack.lee@business.net,Analytics Inc,Manager,google,q1-webinar,cpc\n"
        'Kelly,White,kelly.white@org.gov,"GovTech, Inc.",Director,email,q1-webinar,email'
    ),
}

PARAMETER_EXAMPLES: dict[str, dict[str, Any]] = {
    "basic_submission": {
        "operation": "submit",
        "site_id": "123",
        "elq_form_name": "ContactForm2025",
        "csv_data": CSV_EXAMPLES["contact_form"],
        "request_timeout": 10,
        "delay_between_requests": 100,
        "max_concurrent_requests": 5,
    },
    "validation_only": {
        "operation": "submit",
        "site_id": "123",
        "elq_form_name": "LeadGenForm",
        "csv_data": CSV_EXAMPLES["lead_gen_form"],
        "validate_only": True,
    },
    "high_volume_submission": {
        "operation": "submit",
        "site_id": "456",
        "elq_form_name": "EventRegistration2025",
        "csv_data": CSV_EXAMPLES["webinar_registration"],
        "request_timeout": 15,
        "delay_between_requests": 200,
        "stagger_delay": 50,
        "max_concurrent_requests": 3,
    },
}

USAGE_GUIDE: dict[str, Any] = {
    "csv_format": {
        "title": "CSV Format Requirements",
        "requirements": [
            "First row must contain column headers",
            "Headers should match form field HTML names",
            "Use UTF-8 encoding",
            "Quote values containing commas or quotes",
            "Values cannot span multiple lines",
            "Empty rows are skipped",
        ],
        "example": 'firstName,lastName,emailAddress\nJane,"Smith, Jr.",jane.smith@company.com',
    },
    "sanitization": {
        "title": "Data Sanitization",
        "rules": [
            "HTML tags and script blocks are removed from every value",
            "Remaining HTML special characters and slashes are entity-escaped",
            "Values starting with =, +, - or @ are prefixed with a single quote",
        ],
    },
    "best_practices": {
        "title": "Best Practices",
        "tips": [
            "Start with validate_only=true to check your data and sample URLs",
            "Test with a small sample before processing large datasets",
            "Monitor the success rate and lower max_concurrent_requests if needed",
            "Include tracking parameters (utm_source, utm_campaign) for attribution",
        ],
    },
    "result_semantics": {
        "title": "Reading Results",
        "notes": [
            "A row is successful when the HTTP exchange completed",
            "The form endpoint answers 200 even for rejected submissions, so check status_code and Eloqua reports",
            "Timeouts and network errors are reported per row and never stop the job",
        ],
    },
    "rate_limit": {
        "title": "Rate Limiting Guidelines",
        "recommendations": [
            "Fewer than 100 rows: 5-10 concurrent requests, 50-100ms between batches",
            "100-1000 rows: 3-5 concurrent requests, 100-200ms between batches",
            "More than 1000 rows: 1-3 concurrent requests, 200-500ms between batches",
        ],
    },
}


def get_examples(example_type: str) -> dict[str, Any]:
    if example_type == "csv":
        return {"csv_examples": CSV_EXAMPLES}
    if example_type == "parameters":
        return {"parameter_examples": PARAMETER_EXAMPLES}
    return {"csv_examples": CSV_EXAMPLES, "parameter_examples": PARAMETER_EXAMPLES}
