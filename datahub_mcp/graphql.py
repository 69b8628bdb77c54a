"""GraphQL documents sent to DataHub's `/api/graphql` endpoint."""

_OWNERS = """
ownership {
  owners {
    owner {
      ... on CorpUser { urn username info { displayName email } }
      ... on CorpGroup { urn name }
    }
    type
  }
}
"""

_DOMAIN = """
domain {
  domain {
    urn
    properties { name description }
  }
}
"""

_CUSTOM_PROPERTIES = "customProperties { key value }"

SEARCH = f"""
query search($input: SearchInput!) {{
  search(input: $input) {{
    start
    count
    total
    searchResults {{
      entity {{
        urn
        type
        ... on Dataset {{
          name
          description
          platform {{ name }}
          {_OWNERS}
          tags {{ tags {{ tag {{ urn name description }} }} }}
          {_DOMAIN}
        }}
        ... on Dashboard {{
          dashboardId
          info {{ name description }}
          platform {{ name }}
        }}
        ... on DataFlow {{
          flowId
          info {{ name description }}
          platform {{ name }}
        }}
        ... on DataProduct {{ properties {{ name description }} }}
        ... on GlossaryTerm {{ properties {{ name description }} }}
        ... on Tag {{ properties {{ name description }} }}
      }}
      matchedFields {{ name value }}
    }}
  }}
}}
"""

GET_ENTITY = f"""
query getEntity($urn: String!) {{
  entity(urn: $urn) {{
    urn
    type
    ... on Dataset {{
      name
      description
      platform {{ name }}
      {_OWNERS}
      tags {{ tags {{ tag {{ urn name description }} }} }}
      glossaryTerms {{ terms {{ term {{ urn properties {{ name description }} }} }} }}
      {_DOMAIN}
      deprecation {{ deprecated note actor decommissionTime }}
      properties {{ name description {_CUSTOM_PROPERTIES} }}
      subTypes {{ typeNames }}
    }}
    ... on Dashboard {{
      dashboardId
      info {{ name description externalUrl }}
      platform {{ name }}
      {_OWNERS}
    }}
  }}
}}
"""

GET_SCHEMA = """
query getSchema($urn: String!) {
  dataset(urn: $urn) {
    schemaMetadata {
      name
      platformSchema { ... on TableSchema { schema } }
      version
      hash
      fields {
        fieldPath
        type
        nativeDataType
        description
        nullable
        isPartOfKey
        tags { tags { tag { urn name } } }
        glossaryTerms { terms { term { urn name } } }
      }
      primaryKeys
      foreignKeys {
        name
        sourceFields { fieldPath }
        foreignDataset { urn }
        foreignFields { fieldPath }
      }
    }
  }
}
"""

# searchAcrossLineage no longer accepts maxHops; depth is filtered on the returned degree.
GET_LINEAGE = """
query getLineage($urn: String!, $direction: LineageDirection!) {
  searchAcrossLineage(input: {urn: $urn, direction: $direction}) {
    searchResults {
      entity {
        urn
        type
        ... on Dataset { name platform { name } description }
        ... on DataJob { jobId info { name } dataFlow { urn flowId } }
      }
      degree
      paths { path { urn } }
    }
  }
}
"""

GET_COLUMN_LINEAGE = """
query getColumnLineage($urn: String!) {
  dataset(urn: $urn) {
    fineGrainedLineages {
      upstreams { path dataset }
      downstreams { path }
      transformOperation
      confidenceScore
      query
    }
  }
}
"""

GET_QUERIES = """
query getQueries($urn: String!) {
  dataset(urn: $urn) {
    usageStats {
      buckets {
        bucket
        duration
        metrics { topSqlQueries }
      }
    }
  }
}
"""

GET_GLOSSARY_TERM = f"""
query getGlossaryTerm($urn: String!) {{
  glossaryTerm(urn: $urn) {{
    urn
    name
    hierarchicalName
    properties {{ name description {_CUSTOM_PROPERTIES} }}
    parentNodes {{ nodes {{ urn properties {{ name }} }} }}
    {_OWNERS}
  }}
}}
"""

LIST_TAGS = """
query listTags($input: SearchInput!) {
  search(input: $input) {
    total
    searchResults {
      entity {
        ... on Tag { urn name description properties { name description } }
      }
    }
  }
}
"""

LIST_DOMAINS = f"""
query listDomains {{
  listDomains(input: {{start: 0, count: 100}}) {{
    total
    domains {{
      urn
      properties {{ name description }}
      {_OWNERS}
      entities(input: {{start: 0, count: 0}}) {{ total }}
    }}
  }}
}}
"""

LIST_DATA_PRODUCTS = f"""
query listDataProducts {{
  listDataProducts(input: {{start: 0, count: 100}}) {{
    total
    dataProducts {{
      urn
      properties {{ name description {_CUSTOM_PROPERTIES} }}
      {_DOMAIN}
      {_OWNERS}
    }}
  }}
}}
"""

GET_DATA_PRODUCT = f"""
query getDataProduct($urn: String!) {{
  dataProduct(urn: $urn) {{
    urn
    properties {{ name description {_CUSTOM_PROPERTIES} }}
    {_DOMAIN}
    {_OWNERS}
  }}
}}
"""

PING = """
query ping {
  __typename
}
"""

UPDATE_DESCRIPTION = """
mutation updateDescription($urn: String!, $description: String!) {
  updateDescription(input: {resourceUrn: $urn, description: $description})
}
"""

ADD_TAG = """
mutation addTag($urn: String!, $tagUrn: String!) {
  addTag(input: {resourceUrn: $urn, tagUrn: $tagUrn})
}
"""

REMOVE_TAG = """
mutation removeTag($urn: String!, $tagUrn: String!) {
  removeTag(input: {resourceUrn: $urn, tagUrn: $tagUrn})
}
"""

ADD_TERM = """
mutation addTerm($urn: String!, $termUrn: String!) {
  addTerm(input: {resourceUrn: $urn, termUrn: $termUrn})
}
"""

REMOVE_TERM = """
mutation removeTerm($urn: String!, $termUrn: String!) {
  removeTerm(input: {resourceUrn: $urn, termUrn: $termUrn})
}
"""

ADD_LINK = """
mutation addLink($urn: String!, $linkUrl: String!, $label: String!) {
  addLink(input: {resourceUrn: $urn, linkUrl: $linkUrl, label: $label})
}
"""

REMOVE_LINK = """
mutation removeLink($urn: String!, $linkUrl: String!) {
  removeLink(input: {resourceUrn: $urn, linkUrl: $linkUrl})
}
"""
