"""GraphQL documents sent to GitHub. Field selections match what the mappers read."""

_USER_FIELDS = """
  id
  login
  avatarUrl
  name
  bio
  location
  company
  email
  websiteUrl
  twitterUsername
"""

_REPOSITORY_FIELDS = """
  id
  name
  description
  url
  createdAt
  updatedAt
  isPrivate
  visibility
  owner { login avatarUrl }
  collaborators(first: 50) {
    edges {
      permission
      node { id login avatarUrl }
    }
  }
"""

_PROJECT_FIELDS = """
  id
  number
  title
  shortDescription
  url
  closed
  createdAt
  updatedAt
  owner { ... on User { id login } ... on Organization { id login } }
  creator { login avatarUrl }
  repositories(first: 20) { nodes { id name owner { login } } }
  fields(first: 20) {
    nodes {
      ... on ProjectV2FieldCommon { id name dataType }
      ... on ProjectV2SingleSelectField { options { id name color } }
    }
  }
  items(first: 100) {
    nodes {
      id
      fieldValueByName(name: "Status") {
        ... on ProjectV2ItemFieldSingleSelectValue { name }
      }
      content {
        __typename
        ... on Issue {
          id
          number
          title
          body
          state
          url
          createdAt
          updatedAt
          assignees(first: 10) { nodes { id login avatarUrl name } }
          labels(first: 20) { nodes { id name color description } }
        }
        ... on DraftIssue {
          id
          title
          body
          createdAt
          updatedAt
        }
      }
    }
  }
"""

GET_ALL_INITIAL_DATA = f"""
query GetAllInitialData {{
  viewer {{
    {_USER_FIELDS}
    repositories(first: 100, orderBy: {{field: UPDATED_AT, direction: DESC}}) {{
      nodes {{ {_REPOSITORY_FIELDS} }}
    }}
    projectsV2(first: 50) {{
      nodes {{ {_PROJECT_FIELDS} }}
    }}
  }}
}}
"""

GET_VIEWER = f"""
query GetViewer {{
  viewer {{ {_USER_FIELDS} }}
}}
"""

GET_REPOSITORIES = f"""
query GetRepositories {{
  viewer {{
    repositories(first: 100, orderBy: {{field: UPDATED_AT, direction: DESC}}) {{
      nodes {{ {_REPOSITORY_FIELDS} }}
    }}
  }}
}}
"""

GET_PROJECTS = f"""
query GetProjects {{
  viewer {{
    login
    projectsV2(first: 50) {{
      nodes {{ {_PROJECT_FIELDS} }}
    }}
  }}
}}
"""

CREATE_PROJECT = f"""
mutation CreateProject($input: CreateProjectV2Input!) {{
  createProjectV2(input: $input) {{
    projectV2 {{ {_PROJECT_FIELDS} }}
  }}
}}
"""

UPDATE_PROJECT = """
mutation UpdateProject($input: UpdateProjectV2Input!) {
  updateProjectV2(input: $input) {
    projectV2 { id title shortDescription closed updatedAt }
  }
}
"""

DELETE_PROJECT = """
mutation DeleteProject($input: DeleteProjectV2Input!) {
  deleteProjectV2(input: $input) {
    projectV2 { id }
  }
}
"""

LINK_REPOSITORY_TO_PROJECT = """
mutation LinkRepositoryToProject($input: LinkProjectV2ToRepositoryInput!) {
  linkProjectV2ToRepository(input: $input) {
    repository { id name owner { login } }
  }
}
"""

CREATE_REPOSITORY = f"""
mutation CreateRepository($input: CreateRepositoryInput!) {{
  createRepository(input: $input) {{
    repository {{ {_REPOSITORY_FIELDS} }}
  }}
}}
"""

UPDATE_REPOSITORY = """
mutation UpdateRepository($input: UpdateRepositoryInput!) {
  updateRepository(input: $input) {
    repository { id name description updatedAt }
  }
}
"""

ARCHIVE_REPOSITORY = """
mutation ArchiveRepository($input: ArchiveRepositoryInput!) {
  archiveRepository(input: $input) {
    repository { id isArchived }
  }
}
"""

CREATE_ISSUE = """
mutation CreateIssue($input: CreateIssueInput!) {
  createIssue(input: $input) {
    issue {
      id number title body state url createdAt updatedAt
      labels(first: 20) { nodes { id name color description } }
    }
  }
}
"""

UPDATE_ISSUE = """
mutation UpdateIssue($input: UpdateIssueInput!) {
  updateIssue(input: $input) {
    issue { id title body state updatedAt }
  }
}
"""

DELETE_ISSUE = """
mutation DeleteIssue($input: DeleteIssueInput!) {
  deleteIssue(input: $input) {
    clientMutationId
  }
}
"""

CREATE_DRAFT_ISSUE = """
mutation CreateDraftIssue($input: AddProjectV2DraftIssueInput!) {
  addProjectV2DraftIssue(input: $input) {
    projectItem {
      id
      content {
        ... on DraftIssue { id title body createdAt updatedAt }
      }
    }
  }
}
"""

ADD_PROJECT_ITEM = """
mutation AddProjectItem($input: AddProjectV2ItemByIdInput!) {
  addProjectV2ItemById(input: $input) {
    item { id }
  }
}
"""

UPDATE_ITEM_STATUS = """
mutation UpdateItemStatus($input: UpdateProjectV2ItemFieldValueInput!) {
  updateProjectV2ItemFieldValue(input: $input) {
    projectV2Item {
      id
      fieldValueByName(name: "Status") {
        ... on ProjectV2ItemFieldSingleSelectValue { name }
      }
    }
  }
}
"""

CREATE_LABEL = """
mutation CreateLabel($input: CreateLabelInput!) {
  createLabel(input: $input) {
    label { id name color description }
  }
}
"""

UPDATE_LABEL = """
mutation UpdateLabel($input: UpdateLabelInput!) {
  updateLabel(input: $input) {
    label { id name color description }
  }
}
"""

DELETE_LABEL = """
mutation DeleteLabel($input: DeleteLabelInput!) {
  deleteLabel(input: $input) {
    clientMutationId
  }
}
"""

GET_USER = """
query GetUser($login: String!) {
  user(login: $login) { id login avatarUrl name }
}
"""

UPDATE_PROJECT_COLLABORATORS = """
mutation UpdateProjectCollaborators($input: UpdateProjectV2CollaboratorsInput!) {
  updateProjectV2Collaborators(input: $input) {
    collaborators(first: 1) { totalCount }
  }
}
"""
