from typing import Iterable, List, Optional

SKILL_VOCABULARY = (
    # Languages & runtimes
    "C#", "C++", "Java", "Python", "JavaScript", "TypeScript", "Go", "Rust", "Ruby", "PHP",
    ".NET", "ASP.NET", "Node.js",
    # Frameworks
    "React", "Angular", "Vue", "Django", "Flask", "Spring",
    # Cloud & delivery
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Jenkins", "Git", "CI/CD",
    # Data stores
    "SQL", "MySQL", "PostgreSQL", "MongoDB", "DynamoDB", "Redis", "Elasticsearch",
    # Architecture & process
    "REST", "GraphQL", "gRPC", "Microservices", "API", "Agile", "Scrum",
    # ML / data
    "Machine Learning", "AI", "Data Science", "TensorFlow", "PyTorch",
    # Frontend
    "HTML", "CSS", "SASS", "Bootstrap", "Tailwind",
    # Platforms & infrastructure
    "Linux", "Unix", "Windows", "MacOS", "Terraform", "Ansible", "CloudFormation",
    "Serverless", "Lambda",
    # Enterprise
    "SAP", "Salesforce", "Oracle EBS", "ERP", "CRM", "ABAP",
)


def dedupe_skills(skills: Iterable[str]) -> List[str]:
    """Drops case-insensitive duplicates, keeping the first spelling seen."""
    seen = set()
    unique = []
    for skill in skills:
        folded = skill.casefold()
        if folded in seen:
            continue
        seen.add(folded)
        unique.append(skill)
    return unique


def match_skills(text: Optional[str], vocabulary: Iterable[str] = SKILL_VOCABULARY) -> List[str]:
    """
    Returns every vocabulary entry that occurs in ``text`` (case-insensitive
    substring match), in vocabulary order.
    """
    if not text:
        return []
    haystack = text.casefold()
    return dedupe_skills(skill for skill in vocabulary if skill.casefold() in haystack)
