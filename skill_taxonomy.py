"""
Skill taxonomy - categorized reference vocabulary used for lexical skill matching
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from errors import InvalidInputError

CATEGORIES = (
    'Programming', 'Frameworks', 'Database', 'Cloud', 'DataScience', 'Mobile',
    'Testing', 'DevOps', 'Design', 'ProjectManagement', 'Security',
)

DEFAULT_SKILLS: Dict[str, Tuple[str, ...]] = {
    'Programming': (
        'java', 'python', 'javascript', 'typescript', 'c++', 'c#', 'c', 'go', 'rust', 'php', 'ruby',
        'kotlin', 'swift', 'scala', 'r', 'matlab', 'perl', 'shell', 'bash', 'powershell', 'vba',
        'objective-c', 'dart', 'groovy', 'lua', 'haskell', 'erlang', 'clojure', 'f#', 'cobol', 'fortran',
        'html', 'css', 'sql',
    ),
    'Frameworks': (
        'react', 'angular', 'vue', 'svelte', 'express', 'flask', 'django', 'spring', 'spring boot',
        'nodejs', 'node.js', 'laravel', 'symfony', 'codeigniter', 'rails', 'ruby on rails', 'asp.net',
        '.net', 'dotnet', 'hibernate', 'mybatis', 'jpa', 'entity framework', 'sequelize', 'mongoose',
        'redux', 'mobx', 'rxjs', 'jquery', 'bootstrap', 'tailwind', 'material-ui', 'ant design',
        'electron', 'react native', 'flutter', 'xamarin', 'ionic', 'cordova', 'phonegap',
        'microservices', 'graphql',
    ),
    'Database': (
        'mysql', 'postgresql', 'mongodb', 'redis', 'elasticsearch', 'cassandra', 'oracle', 'sql server',
        'sqlite', 'mariadb', 'dynamodb', 'firestore', 'couchdb', 'neo4j', 'influxdb', 'clickhouse',
        'hbase', 'bigquery', 'snowflake', 'redshift', 'athena', 'aurora', 'cosmos db',
    ),
    'Cloud': (
        'aws', 'azure', 'gcp', 'google cloud', 'docker', 'kubernetes', 'jenkins', 'terraform', 'ansible',
        'chef', 'puppet', 'vagrant', 'openshift', 'heroku', 'netlify', 'vercel', 'cloudflare',
        's3', 'ec2', 'lambda', 'api gateway', 'cloudformation', 'cloud functions', 'app engine',
        'cloud storage', 'cloud sql', 'iam', 'vpc', 'load balancer', 'cdn', 'route 53',
    ),
    'DataScience': (
        'pandas', 'numpy', 'scikit-learn', 'tensorflow', 'pytorch', 'keras', 'opencv', 'nltk',
        'spacy', 'matplotlib', 'seaborn', 'plotly', 'jupyter', 'anaconda', 'spark', 'hadoop',
        'kafka', 'airflow', 'dask', 'xgboost', 'lightgbm', 'catboost', 'tableau', 'power bi',
        'qlik', 'looker', 'r studio', 'sas', 'spss', 'stata', 'machine learning', 'deep learning',
        'neural networks', 'nlp', 'computer vision', 'data mining', 'big data', 'etl',
    ),
    'Mobile': (
        'android', 'ios', 'react native', 'flutter', 'xamarin', 'ionic', 'cordova', 'phonegap',
        'swift', 'objective-c', 'kotlin', 'java android', 'android studio', 'xcode', 'firebase',
        'core data', 'realm', 'sqlite mobile', 'push notifications', 'in-app purchases',
    ),
    'Testing': (
        'junit', 'testng', 'mockito', 'selenium', 'cypress', 'jest', 'mocha', 'chai', 'jasmine',
        'karma', 'protractor', 'cucumber', 'postman', 'insomnia', 'swagger', 'rest assured',
        'pytest', 'unittest', 'robot framework', 'jmeter', 'loadrunner', 'gatling', 'k6',
    ),
    'DevOps': (
        'git', 'github', 'gitlab', 'bitbucket', 'svn', 'mercurial', 'jenkins', 'bamboo', 'teamcity',
        'azure devops', 'circleci', 'travis ci', 'github actions', 'docker', 'podman', 'kubernetes',
        'helm', 'istio', 'prometheus', 'grafana', 'elk stack', 'splunk', 'datadog', 'new relic',
    ),
    'Design': (
        'photoshop', 'illustrator', 'sketch', 'figma', 'adobe xd', 'invision', 'zeplin', 'principle',
        'framer', 'after effects', 'premiere pro', 'canva', 'gimp', 'inkscape', 'blender', 'maya',
        '3ds max', 'autocad', 'solidworks', 'ui/ux', 'user experience', 'user interface', 'wireframing',
        'prototyping', 'responsive design', 'accessibility', 'usability testing',
    ),
    'ProjectManagement': (
        'jira', 'confluence', 'trello', 'asana', 'monday.com', 'notion', 'slack', 'microsoft teams',
        'zoom', 'agile', 'scrum', 'kanban', 'waterfall', 'lean', 'six sigma', 'pmp', 'prince2',
        'project management', 'product management', 'stakeholder management', 'risk management',
    ),
    'Security': (
        'owasp', 'burp suite', 'metasploit', 'nmap', 'wireshark', 'kali linux', 'penetration testing',
        'vulnerability assessment', 'security audit', 'encryption', 'ssl/tls', 'oauth', 'jwt',
        'saml', 'ldap', 'active directory', 'iam', 'firewall', 'intrusion detection', 'siem',
    ),
}

# Alias -> canonical term; substring presence of the alias triggers the target
DEFAULT_ABBREVIATIONS: Dict[str, str] = {
    'js': 'javascript',
    'ts': 'typescript',
    'css3': 'css',
    'html5': 'html',
    'ui': 'user interface',
    'ux': 'user experience',
    'db': 'database',
}


@dataclass(frozen=True)
class SkillTaxonomy:
    """Immutable categorized skill vocabulary

    Build with ``SkillTaxonomy.create`` (or ``default_taxonomy``) once at
    process start and share the instance; it is never mutated afterwards so
    concurrent readers need no locking.
    """

    categories: Mapping[str, Tuple[str, ...]]
    abbreviations: Mapping[str, str]
    all_terms: FrozenSet[str] = field(init=False)
    multi_word_terms: Tuple[str, ...] = field(init=False)

    def __post_init__(self):
        terms = frozenset(term for values in self.categories.values() for term in values)
        object.__setattr__(self, 'all_terms', terms)
        # Sorted so the multi-word pass always scans in the same order
        object.__setattr__(self, 'multi_word_terms', tuple(sorted(t for t in terms if ' ' in t)))

    @classmethod
    def create(cls, categories: Mapping[str, Iterable[str]],
               abbreviations: Optional[Mapping[str, str]] = None) -> 'SkillTaxonomy':
        """Validated factory: lowercase terms, no duplicates inside a category"""
        normalized = {}
        for category, terms in categories.items():
            if category not in CATEGORIES:
                raise InvalidInputError(f"Unknown skill category: {category!r}")
            cleaned = []
            for term in terms:
                term = term.strip().lower()
                if not term:
                    raise InvalidInputError(f"Empty skill term in category {category!r}")
                if term in cleaned:
                    raise InvalidInputError(f"Duplicate skill term {term!r} in category {category!r}")
                cleaned.append(term)
            normalized[category] = tuple(cleaned)

        aliases = {k.lower(): v.lower() for k, v in (abbreviations or {}).items()}
        return cls(categories=MappingProxyType(normalized), abbreviations=MappingProxyType(aliases))

    def __contains__(self, term: str) -> bool:
        return term in self.all_terms

    def category_of(self, term: str) -> Optional[str]:
        """First category (in declaration order) that lists the term"""
        term = term.lower()
        for category in CATEGORIES:
            if term in self.categories.get(category, ()):
                return category
        return None

    def terms_in(self, category: str) -> Tuple[str, ...]:
        return self.categories.get(category, ())


_default_taxonomy: Optional[SkillTaxonomy] = None


def default_taxonomy() -> SkillTaxonomy:
    """Get or create the process-wide default taxonomy"""
    global _default_taxonomy

    if _default_taxonomy is None:
        _default_taxonomy = SkillTaxonomy.create(DEFAULT_SKILLS, DEFAULT_ABBREVIATIONS)

    return _default_taxonomy
