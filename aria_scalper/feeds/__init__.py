"""External data feeds: fear & greed, funding, options skew, news, on-chain and social sentiment."""