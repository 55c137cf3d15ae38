_instruments = ("graphql-core >= 3.2",)
