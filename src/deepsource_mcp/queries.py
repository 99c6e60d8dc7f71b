"""GraphQL documents sent to the DeepSource API."""

from .constants import PROCESSING


PAGE_INFO_FIELDS = """
      pageInfo {
        hasNextPage
        hasPreviousPage
        startCursor
        endCursor
      }
"""

RUN_FIELDS = """
  id
  runUid
  commitOid
  branchName
  baseOid
  status
  createdAt
  updatedAt
  finishedAt
  summary {
    occurrencesIntroduced
    occurrencesResolved
    occurrencesSuppressed
    occurrenceDistributionByAnalyzer {
      analyzerShortcode
      introduced
    }
    occurrenceDistributionByCategory {
      category
      introduced
    }
  }
  repository {
    name
    id
  }
"""

VIEWER_PROJECTS_QUERY = f"""
query {{
  viewer {{
    email
    accounts {{
      edges {{
        node {{
          login
          repositories(first: {PROCESSING.PROJECTS_PER_ACCOUNT}) {{
            edges {{
              node {{
                name
                defaultBranch
                dsn
                isPrivate
                isActivated
                vcsProvider
                vcsUrl
              }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""

REPOSITORY_ISSUES_QUERY = f"""
query getRepositoryIssues(
  $name: String!
  $login: String!
  $provider: VCSProvider!
  $offset: Int
  $first: Int
  $after: String
  $before: String
  $last: Int
  $analyzerIn: [String]
  $tags: [String]
  $path: String
) {{
  repository(name: $name, login: $login, vcsProvider: $provider) {{
    name
    defaultBranch
    dsn
    isPrivate
    issues(
      offset: $offset
      first: $first
      after: $after
      before: $before
      last: $last
      analyzerIn: $analyzerIn
      tags: $tags
      path: $path
    ) {{
{PAGE_INFO_FIELDS}
      totalCount
      edges {{
        node {{
          id
          issue {{
            shortcode
            title
            category
            severity
            description
            tags
          }}
          occurrences(first: {PROCESSING.OCCURRENCES_PER_ISSUE}) {{
            edges {{
              node {{
                id
                path
                beginLine
                endLine
                beginColumn
                endColumn
                title
              }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""

REPOSITORY_RUNS_QUERY = f"""
query getRepositoryRuns(
  $name: String!
  $login: String!
  $provider: VCSProvider!
  $offset: Int
  $first: Int
  $after: String
  $before: String
  $last: Int
) {{
  repository(name: $name, login: $login, vcsProvider: $provider) {{
    name
    id
    analysisRuns(
      offset: $offset
      first: $first
      after: $after
      before: $before
      last: $last
    ) {{
{PAGE_INFO_FIELDS}
      totalCount
      edges {{
        node {{
{RUN_FIELDS}
        }}
      }}
    }}
  }}
}}
"""

RUN_BY_UID_QUERY = f"""
query getRun($runUid: UUID!) {{
  run(runUid: $runUid) {{
{RUN_FIELDS}
  }}
}}
"""

RUN_BY_COMMIT_QUERY = f"""
query getRunByCommit($commitOid: String!) {{
  runByCommit: run(commitOid: $commitOid) {{
{RUN_FIELDS}
  }}
}}
"""

RUN_ISSUES_QUERY = f"""
query getRunIssues(
  $runUid: UUID!
  $first: Int
  $after: String
  $before: String
  $last: Int
) {{
  run(runUid: $runUid) {{
    checks {{
      edges {{
        node {{
          analyzer {{
            shortcode
          }}
          occurrences(first: $first, after: $after, before: $before, last: $last) {{
{PAGE_INFO_FIELDS}
            totalCount
            edges {{
              node {{
                id
                path
                beginLine
                issue {{
                  shortcode
                  title
                  category
                  severity
                  description
                  tags
                }}
              }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""

DEPENDENCY_VULNERABILITIES_QUERY = f"""
query getDependencyVulnerabilities(
  $name: String!
  $login: String!
  $provider: VCSProvider!
  $offset: Int
  $first: Int
  $after: String
  $before: String
  $last: Int
) {{
  repository(name: $name, login: $login, vcsProvider: $provider) {{
    name
    id
    dependencyVulnerabilityOccurrences(
      offset: $offset
      first: $first
      after: $after
      before: $before
      last: $last
    ) {{
{PAGE_INFO_FIELDS}
      totalCount
      edges {{
        node {{
          id
          reachability
          fixability
          package {{
            id
            ecosystem
            name
            purl
          }}
          packageVersion {{
            id
            version
            versionType
          }}
          vulnerability {{
            id
            identifier
            aliases
            summary
            details
            publishedAt
            updatedAt
            withdrawnAt
            severity
            cvssV2Vector
            cvssV2BaseScore
            cvssV2Severity
            cvssV3Vector
            cvssV3BaseScore
            cvssV3Severity
            cvssV4Vector
            cvssV4BaseScore
            cvssV4Severity
            epssScore
            epssPercentile
            introducedVersions
            fixedVersions
            referenceUrls
          }}
        }}
      }}
    }}
  }}
}}
"""

QUALITY_METRICS_QUERY = """
query getQualityMetrics(
  $name: String!
  $login: String!
  $provider: VCSProvider!
  $shortcodeIn: [MetricShortcode]
) {
  repository(name: $name, login: $login, vcsProvider: $provider) {
    name
    id
    metrics(shortcodeIn: $shortcodeIn) {
      name
      shortcode
      description
      positiveDirection
      unit
      minValueAllowed
      maxValueAllowed
      isReported
      isThresholdEnforced
      items {
        id
        key
        threshold
        latestValue
        latestValueDisplay
        thresholdStatus
      }
    }
  }
}
"""

METRIC_HISTORY_QUERY = f"""
query getMetricHistory(
  $name: String!
  $login: String!
  $provider: VCSProvider!
  $metricItemId: ID!
  $limit: Int
) {{
  repository(name: $name, login: $login, vcsProvider: $provider) {{
    name
    id
    metric: node(id: $metricItemId) {{
      ... on RepositoryMetricValue {{
        id
        values(first: $limit) {{
          edges {{
            node {{
              id
              value
              valueDisplay
              threshold
              commitOid
              createdAt
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""

SET_METRIC_THRESHOLD_MUTATION = """
mutation setRepositoryMetricThreshold($input: SetRepositoryMetricThresholdInput!) {
  setRepositoryMetricThreshold(input: $input) {
    ok
  }
}
"""

UPDATE_METRIC_SETTING_MUTATION = """
mutation updateRepositoryMetricSetting($input: UpdateRepositoryMetricSettingInput!) {
  updateRepositoryMetricSetting(input: $input) {
    ok
  }
}
"""


def compliance_report_query(report_field: str) -> str:
    """Build the report query for one GraphQL report field (e.g. ``owaspTop10``)."""
    return f"""
query getComplianceReport(
  $name: String!
  $login: String!
  $provider: VCSProvider!
) {{
  repository(name: $name, login: $login, vcsProvider: $provider) {{
    name
    id
    reports {{
      {report_field} {{
        key
        title
        currentValue
        status
        securityIssueStats {{
          key
          title
          occurrence {{
            critical
            major
            minor
            total
          }}
        }}
      }}
    }}
  }}
}}
"""
