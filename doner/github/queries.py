# Organization所有のProject ID取得
GET_ORG_PROJECT_ID = """
query GetOrgProjectId($org: String!, $number: Int!) {
  organization(login: $org) {
    projectV2(number: $number) {
      id
    }
  }
}
"""

# User所有のProject ID取得
GET_USER_PROJECT_ID = """
query GetUserProjectId($user: String!, $number: Int!) {
  user(login: $user) {
    projectV2(number: $number) {
      id
    }
  }
}
"""

# Projectアイテムを1ページ分取得（Status / Iteration はフィールド名で指定）
GET_PROJECT_ITEMS_PAGE = """
query GetProjectItemsPage(
  $projectId: ID!
  $cursor: String
  $pageSize: Int!
  $statusField: String!
  $iterationField: String!
) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: $pageSize, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          id
          isArchived
          fieldValueByName(name: $statusField) {
            ... on ProjectV2ItemFieldSingleSelectValue {
              __typename
              name
            }
          }
          iteration: fieldValueByName(name: $iterationField) {
            ... on ProjectV2ItemFieldIterationValue {
              __typename
              title
              startDate
            }
          }
          content {
            __typename
            ... on Issue {
              number
              title
              url
              closedAt
              repository {
                nameWithOwner
              }
              parent {
                number
                title
                url
              }
            }
          }
        }
      }
    }
  }
}
"""

# トークン検証
VALIDATE_TOKEN = """
query {
  viewer {
    login
  }
}
"""
