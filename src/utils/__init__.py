# Display helpers shared by the dashboard pages
